import logging
from typing import Any, Awaitable, Sequence

from ._connection import Connection
from ._entity import (
    entity_from_entity_proto,
    entity_to_entity_proto,
    is_key_complete,
    key_from_key_proto,
    key_to_key_proto,
)
from ._errors import ServiceError, TransportError, ValidationError
from ._key import Key
from ._settings import DATASTORE_BASE_URL

logger = logging.getLogger(__name__)

MODE_NON_TRANSACTIONAL = "NON_TRANSACTIONAL"
MODE_TRANSACTIONAL = "TRANSACTIONAL"


class Transaction:
    """Runs datastore operations, optionally inside a transaction.

    A transaction without an id runs in auto-commit mode, every mutation is
    committed on its own. ``begin`` assigns an id, ``commit`` or
    ``rollback`` finalize the transaction.

    Methods taking keys or entities validate and encode them when called,
    so bad input raises ``ValidationError`` before anything is awaited.
    Overlapping operations on one transaction are not serialized.
    """

    def __init__(
        self,
        connection: Connection,
        dataset_id: str,
        base_url: str = DATASTORE_BASE_URL,
        transactional_mutations: bool = False,
    ):
        """a new transaction, in auto-commit mode until ``begin`` succeeds

        Args:
            connection (Connection): sends the requests, may be shared
            dataset_id (str): the dataset all keys are encoded for
            base_url (str): (Optional) datastore endpoint
            transactional_mutations (bool): (Optional) scope mutations to the
                active transaction id. They are then held back and sent with
                the final ``commit``. Off by default, mutations are then
                always sent at once as NON_TRANSACTIONAL.
        """
        self.connection = connection
        self.dataset_id = dataset_id
        self.base_url = base_url.rstrip("/")
        self.transactional_mutations = transactional_mutations
        self.id: Any = None
        self.finalized = False
        self._pending: dict[str, list[dict]] = _empty_mutation()

    @property
    def mutation_mode(self) -> str:
        if self.transactional_mutations and self.id is not None:
            return MODE_TRANSACTIONAL
        return MODE_NON_TRANSACTIONAL

    async def begin(self):
        body = await self.make_request("beginTransaction", None)
        self.id = (body or {}).get("transaction")
        logger.info(f"began transaction {self.id} on {self.dataset_id}")

    async def commit(self):
        """commit the transaction, with any mutations held back for it"""
        req: dict[str, Any] = {"transaction": self.id}
        if any(self._pending.values()):
            req["mode"] = MODE_TRANSACTIONAL
            req["mutation"] = self._pending
        try:
            await self.make_request("commit", req)
        finally:
            self.finalized = True
            self._pending = _empty_mutation()
        logger.info(f"committed transaction {self.id}")

    async def rollback(self):
        try:
            await self.make_request("rollback", {"transaction": self.id})
        finally:
            self.finalized = True
            self._pending = _empty_mutation()
        logger.info(f"rolled back transaction {self.id}")

    async def finalize(self):
        """commit, unless already committed or rolled back"""
        if not self.finalized:
            await self.commit()

    def get(self, key: Key) -> Awaitable[tuple[Key | None, dict | None]]:
        """Look up one key.

        Returns:
            an awaitable of (key, entity), or (None, None) when not found
        """
        return self._first(self.get_all([key]))

    async def _first(self, lookup: Awaitable[tuple[list[Key], list[dict]]]):
        keys, entities = await lookup
        if len(keys) == 0:
            return None, None
        return keys[0], entities[0]

    def get_all(self, keys: Sequence[Key]) -> Awaitable[tuple[list[Key], list[dict]]]:
        """Look up several keys with one request.

        Returns:
            an awaitable of parallel lists (keys, entities) for the entities
            found, in the order the service returned them
        """
        keys_pb = [key_to_key_proto(self.dataset_id, key) for key in keys]
        return self._lookup(keys_pb)

    async def _lookup(self, keys_pb: list[dict]):
        body = await self.make_request("lookup", {"keys": keys_pb})
        keys: list[Key] = []
        entities: list[dict] = []
        for found in (body or {}).get("found", []):
            keys.append(key_from_key_proto(found["entity"]["key"]))
            entities.append(entity_from_entity_proto(found["entity"]))
        return keys, entities

    def put(self, key: Key, entity: dict) -> Awaitable[Any]:
        return self.put_all([key], [entity])

    def put_all(self, keys: Sequence[Key], entities: Sequence[dict]) -> Awaitable[Any]:
        """Save entities with one commit.

        Complete keys are updated, incomplete keys are inserted with an id
        assigned by the service. In TRANSACTIONAL mode nothing is sent, the
        mutations wait for ``commit``.

        Returns:
            an awaitable of the raw commit response, None when held back

        Raises:
            ValidationError: keys and entities differ in length
        """
        if len(keys) != len(entities):
            raise ValidationError(
                f"The length of the keys ({len(keys)}) doesn't match"
                f" the length of the entities ({len(entities)})"
            )

        update: list[dict] = []
        insert_auto_id: list[dict] = []
        for key, entity in zip(keys, entities):
            entity_pb = entity_to_entity_proto(entity, self.dataset_id)
            entity_pb["key"] = key_to_key_proto(self.dataset_id, key)
            if is_key_complete(key):
                update.append(entity_pb)
            else:
                insert_auto_id.append(entity_pb)

        return self._mutate({"update": update, "insertAutoId": insert_auto_id})

    def delete(self, key: Key) -> Awaitable[None]:
        return self.delete_all([key])

    def delete_all(self, keys: Sequence[Key]) -> Awaitable[None]:
        keys_pb = [key_to_key_proto(self.dataset_id, key) for key in keys]
        return self._delete(keys_pb)

    async def _delete(self, keys_pb: list[dict]):
        await self._mutate({"delete": keys_pb})

    def run_query(self, query: Any):
        raise NotImplementedError("Queries are not run by transactions")

    async def _mutate(self, mutation: dict[str, list[dict]]) -> Any:
        mode = self.mutation_mode
        if mode == MODE_TRANSACTIONAL:
            for bucket, items in mutation.items():
                self._pending[bucket].extend(items)
            logger.debug(f"holding mutations for transaction {self.id}")
            return None
        return await self.make_request("commit", {"mode": mode, "mutation": mutation})

    async def make_request(self, method: str, req: dict | None) -> Any:
        """POST ``req`` to the dataset's ``method`` endpoint.

        Raises:
            ServiceError: the response body carries an error, this wins over
                a transport error
            TransportError: the request failed
        """
        uri = f"{self.base_url}/{self.dataset_id}/{method}"
        try:
            _, body = await self.connection.request("POST", uri, json=req)
        except TransportError as e:
            if isinstance(e.body, dict) and e.body.get("error"):
                raise ServiceError(e.body["error"]) from e
            raise

        if isinstance(body, dict) and body.get("error"):
            raise ServiceError(body["error"])
        return body

    async def __aenter__(self):
        await self.begin()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        if exc_type is not None:
            if not self.finalized:
                await self.rollback()
        else:
            await self.finalize()


def _empty_mutation() -> dict[str, list[dict]]:
    return {"update": [], "insertAutoId": [], "delete": []}
