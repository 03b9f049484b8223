import base64
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from google.protobuf.timestamp_pb2 import Timestamp as Timestamppb

from ._errors import EncodingError, ValidationError
from ._key import Key, PathElement

logger = logging.getLogger(__name__)

UTC_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def is_key_complete(key: Key) -> bool:
    return all(element.is_complete for element in key.path)


def key_to_key_proto(dataset_id: str | None, key: Key) -> dict:
    """Encode a key as a KeyProto scoped to the given dataset.

    Raises:
        ValidationError: the dataset id is empty, the key has no path, or an
            element other than the last one has neither id nor name
    """
    if not dataset_id:
        raise ValidationError("A dataset id is required to encode a key")
    if len(key.path) == 0:
        raise ValidationError("Cannot encode a key with an empty path")

    path_pb = []
    last = len(key.path) - 1
    for idx, element in enumerate(key.path):
        element_pb: dict[str, Any] = {"kind": element.kind}
        if element.id is not None:
            element_pb["id"] = str(element.id)
        elif element.name is not None:
            element_pb["name"] = element.name
        elif idx != last:
            raise ValidationError(
                f"Key path element {idx} ({element.kind}) is incomplete,"
                " only the last element may be"
            )
        path_pb.append(element_pb)

    return {"partitionId": {"datasetId": dataset_id}, "path": path_pb}


def key_from_key_proto(key_pb: Mapping) -> Key:
    path = []
    for element_pb in key_pb.get("path", []):
        element = PathElement(kind=element_pb["kind"])
        if element_pb.get("id") is not None:
            element.id = int(element_pb["id"])
        elif element_pb.get("name") is not None:
            element.name = element_pb["name"]
        path.append(element)
    return Key(path=path)


def entity_to_entity_proto(entity: Mapping, dataset_id: str | None = None) -> dict:
    """Encode a property mapping as an EntityProto.

    ``dataset_id`` is only needed when a property holds a Key.

    Raises:
        EncodingError: a property value has an unsupported type
    """
    return {
        "property": [
            {"name": name, "value": value_to_value_proto(value, dataset_id)}
            for name, value in entity.items()
        ]
    }


def entity_from_entity_proto(entity_pb: Mapping) -> dict:
    return {
        property_pb["name"]: value_from_value_proto(property_pb.get("value") or {})
        for property_pb in entity_pb.get("property", [])
    }


def value_to_value_proto(value: Any, dataset_id: str | None = None) -> dict:
    # bool before int, bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    elif isinstance(value, int):
        return {"integerValue": str(value)}
    elif isinstance(value, float):
        if value.is_integer():
            return {"integerValue": str(int(value))}
        return {"doubleValue": value}
    elif isinstance(value, str):
        return {"stringValue": value}
    elif isinstance(value, datetime):
        return {"dateTimeValue": to_timestamp_string(value)}
    elif isinstance(value, (bytes, bytearray)):
        return {"blobValue": base64.b64encode(bytes(value)).decode("ascii")}
    elif isinstance(value, Key):
        return {"keyValue": key_to_key_proto(dataset_id, value)}
    elif isinstance(value, Mapping):
        return {"entityValue": entity_to_entity_proto(value, dataset_id)}
    elif isinstance(value, (list, tuple)):
        return {
            "listValue": [value_to_value_proto(item, dataset_id) for item in value],
            "multi": True,
        }
    else:
        raise EncodingError(
            f"Unsupported property value {value!r} of type {type(value)}"
        )


def value_from_value_proto(value_pb: Mapping) -> Any:
    if "listValue" in value_pb:
        return [value_from_value_proto(item) for item in value_pb["listValue"]]
    elif "booleanValue" in value_pb:
        return bool(value_pb["booleanValue"])
    elif "integerValue" in value_pb:
        return int(value_pb["integerValue"])
    elif "doubleValue" in value_pb:
        return float(value_pb["doubleValue"])
    elif "stringValue" in value_pb:
        return value_pb["stringValue"]
    elif "dateTimeValue" in value_pb:
        return from_timestamp_string(value_pb["dateTimeValue"])
    elif "blobValue" in value_pb:
        return base64.b64decode(value_pb["blobValue"])
    elif "keyValue" in value_pb:
        return key_from_key_proto(value_pb["keyValue"])
    elif "entityValue" in value_pb:
        return entity_from_entity_proto(value_pb["entityValue"])

    logger.debug(f"no known value field in {list(value_pb)}")
    return None


def to_timestamp_string(value: datetime) -> str:
    """RFC 3339 in UTC, naive datetimes are taken to be UTC"""
    if not value.tzinfo:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)

    delta = value - UTC_EPOCH
    seconds = delta.days * 86400 + delta.seconds
    return Timestamppb(seconds=seconds, nanos=value.microsecond * 1000).ToJsonString()


def from_timestamp_string(value: str) -> datetime:
    timestamp_pb = Timestamppb()
    timestamp_pb.FromJsonString(value)
    return UTC_EPOCH + timedelta(microseconds=timestamp_pb.ToMicroseconds())
