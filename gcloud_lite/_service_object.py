import logging
from typing import Any

from ._connection import Connection
from ._errors import ServiceError, TransportError

logger = logging.getLogger(__name__)


def is_not_found(error: Exception) -> bool:
    if isinstance(error, ServiceError):
        return error.code == 404
    if isinstance(error, TransportError):
        return error.response is not None and error.response.status_code == 404
    return False


class ServiceObject:
    """A remote resource addressed by ``{base_url}/{id}``.

    Subclasses add their resource specific calls on top of ``request``.
    """

    def __init__(self, connection: Connection, base_url: str, id: str):
        self.connection = connection
        self.base_url = base_url.rstrip("/")
        self.id = id
        self.metadata: dict[str, Any] = {}

    @property
    def uri(self) -> str:
        return f"{self.base_url}/{self.id}"

    async def request(
        self,
        method: str,
        uri: str = "",
        json: Any = None,
        base_uri: str | None = None,
    ) -> Any:
        """send a request relative to this object's uri

        Raises:
            ServiceError: the response body carries an error
            TransportError: the request failed
        """
        full_uri = (base_uri if base_uri is not None else self.uri) + uri
        try:
            _, body = await self.connection.request(method, full_uri, json=json)
        except TransportError as e:
            if isinstance(e.body, dict) and e.body.get("error"):
                raise ServiceError(e.body["error"]) from e
            raise

        if isinstance(body, dict) and body.get("error"):
            raise ServiceError(body["error"])
        return body


class MetadataServiceObject(ServiceObject):
    """A service object whose metadata can be read, written and deleted"""

    set_metadata_method = "PATCH"

    async def get_metadata(self) -> dict:
        self.metadata = await self.request("GET")
        return self.metadata

    async def set_metadata(self, metadata: dict) -> dict:
        self.metadata = await self.request(self.set_metadata_method, json=metadata)
        return self.metadata

    async def delete(self) -> Any:
        return await self.request("DELETE")

    async def exists(self) -> bool:
        try:
            await self.get_metadata()
        except (ServiceError, TransportError) as e:
            if is_not_found(e):
                return False
            raise
        return True
