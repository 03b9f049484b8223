import pytest

from gcloud_lite import (
    Channel,
    Model,
    Prediction,
    ServiceError,
    Storage,
    TransportError,
)
from gcloud_lite._settings import PREDICTION_BASE_URL, STORAGE_BASE_URL
from .fake_connection import FakeConnection

MODEL_URI = f"{PREDICTION_BASE_URL}/project-id/trainedmodels/model-id"


@pytest.fixture()
def model(connection: FakeConnection) -> Model:
    return Prediction("project-id", connection).model("model-id")


@pytest.fixture()
def channel(connection: FakeConnection) -> Channel:
    return Storage(connection).channel("channel-id", "resource-id")


async def test_model_create(connection: FakeConnection):
    connection.respond({"id": "model-id", "kind": "prediction#training"})
    prediction = Prediction("project-id", connection)

    model = await prediction.create_model("model-id", {"storageDataLocation": "b/d"})

    assert model.uri == MODEL_URI
    assert model.metadata["kind"] == "prediction#training"
    request = connection.requests[0]
    assert request.method == "POST"
    assert request.uri == f"{PREDICTION_BASE_URL}/project-id/trainedmodels"
    assert request.json == {"storageDataLocation": "b/d", "id": "model-id"}


async def test_analyze(model: Model, connection: FakeConnection):
    response = {"dataDescription": "data", "modelDescription": "model"}
    connection.respond(response)

    analysis, api_response = await model.analyze()

    assert analysis == {"data": "data", "model": "model"}
    assert api_response is response
    assert connection.requests[0].method == "GET"
    assert connection.requests[0].uri == f"{MODEL_URI}/analyze"


async def test_analyze_defaults(model: Model, connection: FakeConnection):
    connection.respond({})
    analysis, _ = await model.analyze()
    assert analysis == {"data": {}, "model": {}}


async def test_query(model: Model, connection: FakeConnection):
    response = {
        "outputLabel": "label",
        "outputMulti": [
            {"label": "a", "score": "0.00000"},
            {"label": "label", "score": "1.00000"},
        ],
    }
    connection.respond(response)

    results, api_response = await model.query("input")

    assert results["winner"] == "label"
    assert [s["score"] for s in results["scores"]] == [1.0, 0.0]
    assert api_response is response
    request = connection.requests[0]
    assert request.method == "POST"
    assert request.uri == f"{MODEL_URI}/predict"
    assert request.json == {"input": {"csvInstance": ["input"]}}


async def test_query_output_value(model: Model, connection: FakeConnection):
    connection.respond({"outputValue": 44})
    results, _ = await model.query("input")
    assert results == {"winner": 44, "scores": []}


async def test_query_error(model: Model, connection: FakeConnection):
    connection.respond({"error": {"code": 400, "message": "bad input"}})
    with pytest.raises(ServiceError):
        await model.query("input")


async def test_train(model: Model, connection: FakeConnection):
    await model.train("label", "input")

    request = connection.requests[0]
    assert request.method == "PUT"
    assert request.uri == MODEL_URI
    assert request.json == {"output": "label", "csvInstance": ["input"]}


async def test_exists(model: Model, connection: FakeConnection):
    connection.respond({"id": "model-id"}, {"error": {"code": 404, "message": "no"}})
    assert await model.exists()
    assert not await model.exists()


async def test_delete(model: Model, connection: FakeConnection):
    await model.delete()
    assert connection.requests[0].method == "DELETE"
    assert connection.requests[0].uri == MODEL_URI


def test_channel_metadata(channel: Channel):
    assert channel.id == "channel-id"
    assert channel.metadata == {"id": "channel-id", "resourceId": "resource-id"}


async def test_channel_stop(channel: Channel, connection: FakeConnection):
    connection.respond({})
    assert await channel.stop() == {}

    request = connection.requests[0]
    assert request.method == "POST"
    assert request.uri == f"{STORAGE_BASE_URL}/channels/stop"
    assert request.json == channel.metadata


@pytest.mark.parametrize(
    "method", ["get_metadata", "set_metadata", "delete", "exists"]
)
def test_channel_has_no_metadata_calls(channel: Channel, method: str):
    assert not hasattr(channel, method)


async def test_model_create_from_model(model: Model, connection: FakeConnection):
    connection.respond({"id": "model-id", "trainingStatus": "RUNNING"})

    assert await model.create({"storageDataLocation": "b/d"}) is model

    assert model.metadata == {"id": "model-id", "trainingStatus": "RUNNING"}
    request = connection.requests[0]
    assert request.method == "POST"
    assert request.uri == f"{PREDICTION_BASE_URL}/project-id/trainedmodels"
    assert request.json == {"storageDataLocation": "b/d", "id": "model-id"}


async def test_model_get(model: Model, connection: FakeConnection):
    connection.respond({"id": "model-id", "trainingStatus": "DONE"})

    assert await model.get() is model

    assert model.metadata["trainingStatus"] == "DONE"
    assert connection.requests[0].method == "GET"
    assert connection.requests[0].uri == MODEL_URI


async def test_model_get_missing(model: Model, connection: FakeConnection):
    connection.respond({"error": {"code": 404, "message": "no"}})
    with pytest.raises(ServiceError) as e:
        await model.get()
    assert e.value.code == 404
    assert len(connection.requests) == 1


async def test_model_get_auto_create(model: Model, connection: FakeConnection):
    connection.respond(
        TransportError("HTTP 404", body={"error": {"code": 404, "message": "no"}}),
        {"id": "model-id", "trainingStatus": "RUNNING"},
    )

    await model.get(auto_create=True, metadata={"storageDataLocation": "b/d"})

    assert [r.method for r in connection.requests] == ["GET", "POST"]
    assert connection.requests[1].json == {
        "storageDataLocation": "b/d",
        "id": "model-id",
    }
    assert model.metadata["trainingStatus"] == "RUNNING"


async def test_model_get_auto_create_other_error(
    model: Model, connection: FakeConnection
):
    connection.respond({"error": {"code": 403, "message": "denied"}})
    with pytest.raises(ServiceError):
        await model.get(auto_create=True)
    assert [r.method for r in connection.requests] == ["GET"]
