import logging
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from ._connection import Connection
from ._entity import is_key_complete, key_from_key_proto, key_to_key_proto
from ._errors import ValidationError
from ._key import Key
from ._query import Query
from ._settings import GCloudSettings, load_settings
from ._transaction import Transaction

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/datastore",
    "https://www.googleapis.com/auth/userinfo.email",
]

T = TypeVar("T")


def dataset_id_from_project_id(project_id: str) -> str:
    # partition prefixes are matched anywhere in the id, not only at the start
    if "s~" not in project_id and "e~" not in project_id:
        return "s~" + project_id
    return project_id


def _listify(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class Dataset:
    """Entry point for one datastore dataset.

    Usage:
        >>> ds = Dataset(project_id="my-project")
        >>> await ds.put(Key.from_path("Company", "Google"), {"size": 100})
        >>> key, company = await ds.get(Key.from_path("Company", "Google"))
    """

    def __init__(
        self,
        project_id: str | None = None,
        credentials_file: str | None = None,
        connection: Connection | None = None,
        settings: GCloudSettings | None = None,
    ):
        """a dataset for the given project

        Args:
            project_id (str): (Optional) the project id, read from the
                GCLOUD_PROJECT_ID environment variable when not given
            credentials_file (str): (Optional) service account key file
            connection (Connection): (Optional) shared connection, one is
                created with the datastore scopes when not given and closed
                by ``close``
            settings (GCloudSettings): (Optional) explicit settings, an
                explicit project_id or credentials_file takes precedence
        """
        overrides = {
            name: value
            for name, value in {
                "project_id": project_id,
                "credentials_file": credentials_file,
            }.items()
            if value is not None
        }
        if settings is None:
            settings = load_settings(**overrides)
        elif overrides:
            settings = settings.model_copy(update=overrides)
        self.settings = settings
        self.id = dataset_id_from_project_id(self.settings.project_id)

        self._owns_connection = connection is None
        if connection is None:
            connection = Connection(
                credentials_file=self.settings.credentials_file,
                scopes=SCOPES,
                timeout=self.settings.timeout,
            )
        self.connection = connection
        self.transaction = self._new_transaction()
        logger.debug(f"dataset {self.id} ready")

    def _new_transaction(self) -> Transaction:
        return Transaction(
            self.connection, self.id, base_url=self.settings.datastore_base_url
        )

    def query(self, kinds: str | Sequence[str]) -> Query:
        """a query over the given kinds in the default namespace"""
        return Query(self.id, [{"kind": kind} for kind in _listify(kinds)])

    def query_ns(self, ns_and_kinds: Any) -> Query:
        """a query over (namespace, kind) pairs

        Usage:
            >>> ds.query_ns([{"ns": "zoo", "kind": "Animal"},
            ...              {"ns": "test", "kind": "Student"}])
        """
        return Query(self.id, _listify(ns_and_kinds))

    def get(self, key: Key):
        return self.transaction.get(key)

    def get_all(self, keys: Sequence[Key]):
        return self.transaction.get_all(keys)

    def put(self, key: Key, entity: dict):
        return self.transaction.put(key, entity)

    def put_all(self, keys: Sequence[Key], entities: Sequence[dict]):
        return self.transaction.put_all(keys, entities)

    def delete(self, key: Key):
        return self.transaction.delete(key)

    def delete_all(self, keys: Sequence[Key]):
        return self.transaction.delete_all(keys)

    def run_query(self, query: Query):
        return self.transaction.run_query(query)

    def new_transaction(self) -> Transaction:
        """an explicit transaction sharing this dataset's connection"""
        return self._new_transaction()

    async def run_in_transaction(
        self, fn: Callable[[Transaction], Awaitable[T]]
    ) -> T:
        """Run ``fn`` inside a new transaction.

        The transaction is committed after ``fn`` returns unless ``fn``
        already committed or rolled it back. If ``fn`` raises, the
        transaction is rolled back and the error re-raised. If the
        transaction cannot begin, ``fn`` is not called. Cancellation rolls
        back as well.
        """
        transaction = self._new_transaction()
        await transaction.begin()
        try:
            result = await fn(transaction)
        except BaseException:
            if not transaction.finalized:
                await transaction.rollback()
            raise
        await transaction.finalize()
        return result

    def allocate_ids(self, incomplete_key: Key, n: int) -> Awaitable[list[Key]]:
        """Reserve ``n`` ids for an incomplete key.

        Returns:
            an awaitable of ``n`` complete keys

        Raises:
            ValidationError: the key is already complete
        """
        if is_key_complete(incomplete_key):
            raise ValidationError("An incomplete key should be provided")
        keys_pb = [key_to_key_proto(self.id, incomplete_key) for _ in range(n)]
        return self._allocate_ids(keys_pb)

    async def _allocate_ids(self, keys_pb: list[dict]) -> list[Key]:
        body = await self.transaction.make_request("allocateIds", {"keys": keys_pb})
        keys = [key_from_key_proto(key_pb) for key_pb in (body or {}).get("keys", [])]
        logger.debug(f"allocated {len(keys)} ids on {self.id}")
        return keys

    async def close(self):
        """close the connection, unless it was passed in by the caller"""
        if self._owns_connection:
            await self.connection.close()
            logger.debug(f"dataset {self.id} closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.close()
