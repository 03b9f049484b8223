from typing import Any

from ._connection import Connection
from ._service_object import ServiceObject
from ._settings import STORAGE_BASE_URL


class Storage:
    def __init__(self, connection: Connection, base_url: str = STORAGE_BASE_URL):
        self.connection = connection
        self.base_url = base_url.rstrip("/")

    def channel(self, id: str, resource_id: str) -> "Channel":
        return Channel(self, id, resource_id)


class Channel(ServiceObject):
    """A notification channel watching a storage resource"""

    def __init__(self, storage: Storage, id: str, resource_id: str):
        super().__init__(storage.connection, f"{storage.base_url}/channels", id)
        self.metadata = {"id": id, "resourceId": resource_id}

    async def stop(self) -> Any:
        """stop receiving notifications on this channel"""
        return await self.request(
            "POST", "/stop", json=self.metadata, base_uri=self.base_url
        )
