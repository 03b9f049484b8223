import logging
from typing import Any

from ._connection import Connection
from ._service_object import MetadataServiceObject, is_not_found
from ._settings import PREDICTION_BASE_URL

logger = logging.getLogger(__name__)


class Prediction:
    """Trained models of one project"""

    def __init__(
        self,
        project_id: str,
        connection: Connection,
        base_url: str = PREDICTION_BASE_URL,
    ):
        self.project_id = project_id
        self.connection = connection
        self.base_url = f"{base_url.rstrip('/')}/{project_id}/trainedmodels"

    def model(self, id: str) -> "Model":
        return Model(self, id)

    async def create_model(self, id: str, metadata: dict | None = None) -> "Model":
        model = Model(self, id)
        body = {**(metadata or {}), "id": id}
        model.metadata = await model.request("POST", json=body, base_uri=self.base_url)
        logger.info(f"created model {id} in {self.project_id}")
        return model


class Model(MetadataServiceObject):
    set_metadata_method = "PUT"

    def __init__(self, prediction: Prediction, id: str):
        super().__init__(prediction.connection, prediction.base_url, id)
        self.prediction = prediction

    async def create(self, metadata: dict | None = None) -> "Model":
        """create this model remotely, its metadata is the service's answer"""
        created = await self.prediction.create_model(self.id, metadata)
        self.metadata = created.metadata
        return self

    async def get(
        self, auto_create: bool = False, metadata: dict | None = None
    ) -> "Model":
        """Fetch the model's metadata.

        Args:
            auto_create (bool): (Optional) create the model with ``metadata``
                when it does not exist
            metadata (dict): (Optional) metadata used on creation

        Raises:
            ServiceError: the model does not exist and auto_create is off
        """
        try:
            await self.get_metadata()
        except Exception as e:
            if not (auto_create and is_not_found(e)):
                raise
            logger.info(f"model {self.id} not found, creating it")
            return await self.create(metadata)
        return self

    async def analyze(self) -> tuple[dict, Any]:
        """Returns:
        ({"data": ..., "model": ...}, the API response)
        """
        response = await self.request("GET", "/analyze")
        analysis = {
            "data": response.get("dataDescription") or {},
            "model": response.get("modelDescription") or {},
        }
        return analysis, response

    async def query(self, input: Any) -> tuple[dict, Any]:
        """Predict the output for one csv instance.

        Returns:
            ({"winner": label or value, "scores": [{"label", "score"}, ...]},
            the API response), scores sorted from highest to lowest
        """
        response = await self.request(
            "POST", "/predict", json={"input": {"csvInstance": [input]}}
        )
        scores = [
            {"label": output.get("label"), "score": float(output.get("score", 0))}
            for output in response.get("outputMulti", [])
        ]
        scores.sort(key=lambda s: s["score"], reverse=True)
        winner = response.get("outputLabel")
        if winner is None:
            winner = response.get("outputValue")
        return {"winner": winner, "scores": scores}, response

    async def train(self, label: Any, input: Any) -> dict:
        """add one training instance to the model"""
        return await self.set_metadata({"output": label, "csvInstance": [input]})
