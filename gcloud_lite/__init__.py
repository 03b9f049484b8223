from ._errors import (
    GCloudError,
    ValidationError,
    EncodingError,
    TransportError,
    ServiceError,
)
from ._settings import GCloudSettings
from ._key import Key, PathElement
from ._entity import (
    key_to_key_proto,
    key_from_key_proto,
    entity_to_entity_proto,
    entity_from_entity_proto,
    is_key_complete,
)
from ._connection import Connection
from ._query import Query, KindExpression
from ._transaction import (
    Transaction,
    MODE_NON_TRANSACTIONAL,
    MODE_TRANSACTIONAL,
)
from ._dataset import Dataset, SCOPES
from ._service_object import MetadataServiceObject, ServiceObject
from ._prediction import Prediction, Model
from ._channel import Storage, Channel

__all__ = [
    "GCloudError",
    "ValidationError",
    "EncodingError",
    "TransportError",
    "ServiceError",
    "GCloudSettings",
    "Key",
    "PathElement",
    "key_to_key_proto",
    "key_from_key_proto",
    "entity_to_entity_proto",
    "entity_from_entity_proto",
    "is_key_complete",
    "Connection",
    "Query",
    "KindExpression",
    "Transaction",
    "MODE_NON_TRANSACTIONAL",
    "MODE_TRANSACTIONAL",
    "Dataset",
    "SCOPES",
    "ServiceObject",
    "MetadataServiceObject",
    "Prediction",
    "Model",
    "Storage",
    "Channel",
]
