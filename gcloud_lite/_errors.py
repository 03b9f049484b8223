from typing import Any


class GCloudError(Exception):
    pass


class ValidationError(GCloudError, ValueError):
    """Malformed caller input, raised before any request is sent"""


class EncodingError(GCloudError, TypeError):
    """A property value has no wire representation"""


class TransportError(GCloudError):
    """The request failed on the network or with an HTTP error status"""

    def __init__(self, message: str, response: Any = None, body: Any = None):
        super().__init__(message)
        self.response = response
        self.body = body


class ServiceError(GCloudError):
    """The service answered with an ``error`` object in the response body"""

    def __init__(self, error: Any):
        self.error = error
        if isinstance(error, dict):
            self.code = error.get("code")
            self.message = error.get("message", "")
            self.errors = error.get("errors", [])
        else:
            self.code = None
            self.message = str(error)
            self.errors = []
        super().__init__(f"service error {self.code}: {self.message}")
