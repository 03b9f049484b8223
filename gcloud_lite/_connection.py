import asyncio
import logging
from typing import Any, Sequence

import google.auth
import httpx
from google.auth.credentials import Credentials
from google.auth.transport.requests import Request as AuthRequest
from google.oauth2 import service_account

from ._errors import TransportError

logger = logging.getLogger(__name__)


class Connection:
    """Sends authorized JSON requests to Google APIs.

    Credentials are resolved on the first request: an explicit credentials
    object, else the service account file, else application default
    credentials. Tokens are refreshed by google-auth on a worker thread.
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        credentials_file: str | None = None,
        scopes: Sequence[str] = (),
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self._credentials = credentials
        self._credentials_file = credentials_file
        self.scopes = list(scopes)
        self._client = client
        self._timeout = timeout
        self._auth_request: AuthRequest | None = None

    @property
    def credentials(self) -> Credentials:
        if self._credentials is None:
            if self._credentials_file:
                logger.info(f"loading credentials from {self._credentials_file}")
                self._credentials = (
                    service_account.Credentials.from_service_account_file(
                        self._credentials_file, scopes=self.scopes
                    )
                )
            else:
                logger.info("using application default credentials")
                self._credentials, _ = google.auth.default(scopes=self.scopes)
        return self._credentials

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def _authorize(self, headers: dict[str, str]):
        credentials = self.credentials
        if not credentials.valid:
            if self._auth_request is None:
                self._auth_request = AuthRequest()
            await asyncio.to_thread(credentials.refresh, self._auth_request)
        credentials.apply(headers)

    async def request(
        self,
        method: str,
        uri: str,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[httpx.Response, Any]:
        """send one request

        Returns:
            the response and its body, parsed when the response is JSON

        Raises:
            TransportError: the request could not be sent or the service
                answered with an HTTP error status
        """
        headers = dict(headers or {})
        await self._authorize(headers)

        logger.debug(f"{method} {uri}")
        try:
            response = await self.client.request(
                method, uri, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {uri} failed: {e}") from e

        body = _parse_body(response)
        if response.is_error:
            raise TransportError(
                f"{method} {uri} failed with HTTP {response.status_code}",
                response=response,
                body=body,
            )
        return response, body

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _parse_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "json" in content_type and response.content:
        try:
            return response.json()
        except ValueError:
            logger.warning(f"could not parse JSON body of {response.url}")
    return response.text
