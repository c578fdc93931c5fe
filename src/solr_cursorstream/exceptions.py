"""Exception hierarchy for solr-cursorstream."""

from __future__ import annotations

from typing import Optional, Sequence


class CursorStreamError(Exception):
    """Base exception for all solr-cursorstream errors."""
    pass


class ConfigurationError(CursorStreamError):
    """
    A required setting is missing when iteration starts.

    Raised before any request is sent. The names of the missing
    settings are available as the ``missing`` attribute.
    """

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(
            f"CursorStream missing value for {', '.join(self.missing)}"
        )


class TransportError(CursorStreamError):
    """
    A page request failed at the HTTP level.

    Common causes:
    - Solr is unreachable or timed out
    - Wrong core URL or handler name (HTTP 404)
    - Solr rejected the query, e.g. a sort without the uniqueKey (HTTP 400)

    ``status_code`` is None for connection failures.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class RateLimitError(TransportError):
    """
    Solr (or a proxy in front of it) answered HTTP 429.

    The retry_after attribute indicates how many seconds to wait.
    """

    def __init__(self, message: str, retry_after: int = 60, url: Optional[str] = None):
        super().__init__(message, status_code=429, url=url)
        self.retry_after = retry_after


class DecodeError(CursorStreamError):
    """
    The response body is not a cursor page.

    A cursor page is JSON with ``response.numFound``, ``response.docs``
    and ``nextCursorMark``. Handlers that don't support cursorMark
    usually omit the last one.
    """
    pass
