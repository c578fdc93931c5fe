"""Single-page cursor requests against a Solr handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from solr_cursorstream.page import Page
from solr_cursorstream.transport import AsyncTransport, Transport

START_CURSOR = "*"


@dataclass(frozen=True)
class QueryConfig:
    """
    The query a cursor stream runs, fixed for the life of one iteration.

    Attributes:
        url: URL of the Solr core, without trailing slash
        handler: Request handler to target
        query: Main query (q)
        filters: Filter queries (fq)
        sort: Sort spec; must include the uniqueKey field for cursors to work
        batch_size: Documents per request (rows)
        fields: Fields to return (fl); empty means all
    """

    url: str
    handler: Optional[str] = "select"
    query: Optional[str] = "*:*"
    filters: Optional[Sequence[str]] = ("*:*",)
    sort: Optional[str] = "id asc"
    batch_size: Optional[int] = 100
    fields: Sequence[str] = field(default_factory=tuple)

    @property
    def solr_url(self) -> str:
        return f"{self.url}/{self.handler}"


def as_list(value: Any) -> Optional[list]:
    """Treat a bare string as a one-item list."""
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return list(value)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple)):
        return len(value) == 0
    return False


def build_params(cursor: str, config: QueryConfig) -> dict[str, Any]:
    """
    Build the query parameters for one cursor request.

    Parameters with no value (None, empty string, empty list) are left
    out entirely. Filters are passed as a list so httpx sends one
    ``fq`` parameter per filter.

    Args:
        cursor: cursorMark to send
        config: Query configuration

    Returns:
        Dict of query parameters

    Example:
        >>> build_params("*", QueryConfig(url="http://solr/core", fields=["id", "title"]))
        {'cursorMark': '*', 'q': '*:*', 'wt': 'json', 'rows': 100, 'sort': 'id asc', 'fq': ['*:*'], 'fl': 'id,title'}
    """
    params = {
        "cursorMark": cursor,
        "q": config.query,
        "wt": "json",
        "rows": config.batch_size,
        "sort": config.sort,
        "fq": as_list(config.filters),
        "fl": ",".join(as_list(config.fields) or ()),
    }
    return {k: v for k, v in params.items() if not is_blank(v)}


class PageFetcher:
    """
    Turns a cursor and a query into one request and one Page.

    Does not retry; retries are the transport's business.
    """

    def __init__(self, transport: Transport | AsyncTransport):
        self.transport = transport

    def fetch_page(self, cursor: str, config: QueryConfig) -> Page:
        """
        Fetch the page of results starting at ``cursor``.

        Args:
            cursor: cursorMark for this request ("*" for the first page)
            config: Query configuration

        Returns:
            Decoded Page

        Raises:
            TransportError: If the request fails
            DecodeError: If the response isn't a cursor page
        """
        body = self.transport.get_json(config.solr_url, build_params(cursor, config))  # type: ignore[union-attr]
        return Page.from_body(body)

    async def afetch_page(self, cursor: str, config: QueryConfig) -> Page:
        """Async version of fetch_page()."""
        body = await self.transport.aget_json(config.solr_url, build_params(cursor, config))  # type: ignore[union-attr]
        return Page.from_body(body)
