"""
Exception taxonomy for aleolib.

Validation errors are raised before any request is made. Fetch errors wrap
transport and HTTP failures. Per-record decryption failures are not errors
at all; see ``aleolib.crypto.record_cipher``.
"""
from typing import Optional


class AleoLibError(Exception):
    """Base class for every error raised by aleolib"""


class InvalidRangeError(AleoLibError, ValueError):
    """A block height range failed validation"""

    def __init__(self, message: str, start=None, end=None):
        super().__init__(message)
        self.start = start
        self.end = end


class InvalidKeyError(AleoLibError, ValueError):
    """Private key material could not be parsed"""


class FetchError(AleoLibError):
    """A request to the node failed or returned an unusable payload"""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.start = start
        self.end = end

    def with_message(self, message: str, **context) -> "FetchError":
        """Copy of this error under a caller-facing message, same class."""
        error = type(self)(
            message,
            url=context.get("url", self.url),
            status_code=context.get("status_code", self.status_code),
            start=context.get("start", self.start),
            end=context.get("end", self.end),
        )
        error.__cause__ = self
        return error


class NotFoundError(FetchError):
    """The node answered 404 for the requested entity"""


class RefetchError(AleoLibError):
    """A fetcher was asked for heights it has already retrieved"""


class ScanTimeoutError(AleoLibError, TimeoutError):
    """A scan did not complete within the caller's timeout"""
