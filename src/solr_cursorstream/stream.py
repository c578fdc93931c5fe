"""CursorStream - iterate over every document matching a Solr query."""

from __future__ import annotations

import logging
import re
from itertools import islice
from pathlib import Path
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Iterator,
    Optional,
    Sequence,
)

import pandas as pd

from solr_cursorstream.config import SolrSettings
from solr_cursorstream.exceptions import ConfigurationError
from solr_cursorstream.fetcher import START_CURSOR, PageFetcher, QueryConfig, as_list, is_blank
from solr_cursorstream.page import Page
from solr_cursorstream.transport import HttpxTransport
from solr_cursorstream._utils.dataframe import records_to_dataframe

_PLAIN_FIELD = re.compile(r"^[\w.-]+$")


class CursorStream:
    """
    Stream documents from a Solr filter query via Solr's cursorMark paging.

    Documents are fetched lazily, ``batch_size`` at a time, so memory use
    stays bounded no matter how many documents match. The stream ends when
    Solr hands back the same cursor it was sent.

    The query attributes (query, handler, filters, sort, batch_size, fields)
    are public for ease of configuration only. Changing them once iteration
    has started leaves the cursor in an undefined state and is not checked;
    make another CursorStream instead. A stream can't be rewound either:
    iterating it again continues from where the cursor stopped.

    Attributes:
        url: URL of the Solr core (trailing slash removed)
        handler: Request handler to target
        query: Main query (q)
        filters: Filter queries (fq)
        sort: Sort spec. MUST include the core's uniqueKey field
        batch_size: Documents per request
        fields: Fields to return; empty means all
        logger: Logger used for page and exhaustion messages
        current_cursor: cursorMark for the next request
        last_cursor: cursorMark used for the previous request

    Example:
        stream = CursorStream(
            "http://localhost:8983/solr/books",
            filters=["format:ebook"],
            fields=["id", "title"],
        )
        for doc in stream:
            print(doc["title"])

    Builder Example:
        def configure(s):
            s.batch_size = 1000
            s.sort = "published desc, id asc"

        stream = CursorStream("http://localhost:8983/solr/books", configure=configure)

    Async Example:
        async with CursorStream("http://localhost:8983/solr/books") as stream:
            async for doc in stream:
                print(doc["id"])
    """

    def __init__(
        self,
        url: str,
        *,
        handler: Optional[str] = "select",
        query: Optional[str] = "*:*",
        filters: Optional[Sequence[str]] = ("*:*",),
        sort: Optional[str] = "id asc",
        batch_size: Optional[int] = 100,
        fields: Optional[Sequence[str]] = (),
        logger: Optional[logging.Logger] = None,
        transport: Optional[Any] = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        configure: Optional[Callable[["CursorStream"], None]] = None,
    ):
        """
        Initialize the stream.

        Args:
            url: URL of the Solr core, e.g. http://localhost:8983/solr/mycore
            handler: Request handler to target (default: "select")
            query: Main query (default: "*:*")
            filters: Filter queries (default: ["*:*"])
            sort: Sort spec including the uniqueKey field (default: "id asc")
            batch_size: Documents fetched per request (default: 100)
            fields: Fields to return (default: all)
            logger: Logger for progress messages (default: module logger)
            transport: Object with get_json(url, params) (and aget_json for
                       async use). Defaults to an HttpxTransport owned and
                       closed by this stream.
            timeout: Request timeout for the default transport
            max_retries: Retry attempts for the default transport
            configure: Callback invoked with the new stream before it is
                       returned, for setting attributes one by one
        """
        self.url = url
        self.handler = handler
        self.query = query
        self.filters = as_list(filters)
        self.sort = sort
        self.batch_size = batch_size
        self.fields = as_list(fields) or []
        self.logger = logger or logging.getLogger(__name__)

        self._owns_transport = transport is None
        if transport is None:
            transport = HttpxTransport(timeout=timeout, max_retries=max_retries)
        self.transport = transport

        self.current_cursor: str = START_CURSOR
        self.last_cursor: Optional[str] = None
        self.num_found: Optional[int] = None
        self.pages_fetched = 0

        if configure is not None:
            configure(self)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[SolrSettings] = None,
        **overrides: Any,
    ) -> "CursorStream":
        """
        Create a stream from SolrSettings.

        Args:
            settings: Optional SolrSettings instance. If not provided,
                     settings are loaded from environment variables.
            **overrides: Constructor arguments that take precedence

        Returns:
            A new CursorStream
        """
        settings = settings or SolrSettings()
        kwargs: dict[str, Any] = {
            "url": settings.url,
            "handler": settings.handler,
            "query": settings.query,
            "filters": settings.filters,
            "sort": settings.sort,
            "batch_size": settings.batch_size,
            "fields": settings.fields,
            "timeout": settings.timeout,
            "max_retries": settings.max_retries,
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    @property
    def url(self) -> str:
        return self._url

    @url.setter
    def url(self, value: str) -> None:
        self._url = re.sub(r"/\Z", "", value)

    @property
    def solr_url(self) -> str:
        """Solr URL built from the core url and the handler."""
        return f"{self.url}/{self.handler}"

    @property
    def has_more(self) -> bool:
        """Whether Solr may have another page of results."""
        return self.last_cursor != self.current_cursor

    def query_config(self) -> QueryConfig:
        """Snapshot the current query attributes."""
        return QueryConfig(
            url=self.url,
            handler=self.handler,
            query=self.query,
            filters=tuple(as_list(self.filters)) if self.filters is not None else None,
            sort=self.sort,
            batch_size=self.batch_size,
            fields=tuple(as_list(self.fields) or ()),
        )

    def _checked_config(self) -> QueryConfig:
        """
        Snapshot the query, making sure we have everything we need.

        Raises:
            ConfigurationError: If handler, filters or batch_size is missing
        """
        required = {
            "handler": self.handler,
            "filters": self.filters,
            "batch_size": self.batch_size,
        }
        missing = [name for name, value in required.items() if is_blank(value)]
        if missing:
            raise ConfigurationError(missing)
        return self.query_config()

    def _advance(self, cursor: str, page: Page) -> None:
        """Move the cursor past a fetched page."""
        self.last_cursor = cursor
        self.current_cursor = page.cursor
        self.num_found = page.num_found
        self.pages_fetched += 1

        self.logger.debug(
            f"Fetched page {self.pages_fetched} at cursorMark={cursor}: "
            f"{len(page)} docs, numFound={page.num_found}"
        )
        if not self.has_more:
            self.logger.info(
                f"Cursor exhausted after {self.pages_fetched} pages from {self.solr_url}"
            )

    # -------------------------------------------------------------------------
    # Public API: Sync methods
    # -------------------------------------------------------------------------

    def get_page(self, config: Optional[QueryConfig] = None) -> Page:
        """
        Fetch a single page (``batch_size`` documents) and advance the cursor.

        Args:
            config: Query snapshot to use (default: the current attributes)

        Returns:
            The fetched Page

        Raises:
            ConfigurationError: If required settings are missing
            TransportError: If the request fails
            DecodeError: If the response isn't a cursor page
        """
        config = config or self._checked_config()
        cursor = self.current_cursor
        page = PageFetcher(self.transport).fetch_page(cursor, config)
        self._advance(cursor, page)
        return page

    def documents(self) -> Iterator[dict[str, Any]]:
        """
        Iterate through the documents in the stream.

        Behind the scenes, these are fetched in batches of ``batch_size``.
        A request is only sent once the previous page has been consumed.

        Returns:
            Iterator of Solr documents as dicts

        Raises:
            ConfigurationError: Immediately, if required settings are missing
            TransportError: From the fetch that failed, ending the iteration
            DecodeError: From the fetch that failed, ending the iteration
        """
        return self._iter_documents(self._checked_config())

    def _iter_documents(self, config: QueryConfig) -> Iterator[dict[str, Any]]:
        while self.has_more:
            page = self.get_page(config)
            yield from page.docs

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return self.documents()

    def to_dataframe(
        self,
        limit: Optional[int] = None,
        parse_dates: Sequence[str] = (),
    ) -> pd.DataFrame:
        """
        Stream the documents into a pandas DataFrame.

        Args:
            limit: Stop after this many documents (default: all)
            parse_dates: Fields to convert to datetime

        Returns:
            DataFrame with one row per document
        """
        docs: Iterator[dict[str, Any]] = self.documents()
        if limit is not None:
            docs = islice(docs, limit)
        return records_to_dataframe(docs, columns=self._columns(), parse_dates=parse_dates)

    def save(self, path: str | Path, limit: Optional[int] = None) -> Path:
        """
        Save the streamed documents to a local file.

        File format is determined by extension:
        - .parquet: Apache Parquet (recommended for large result sets)
        - .csv: Comma-separated values

        Args:
            path: Destination file path
            limit: Stop after this many documents (default: all)

        Returns:
            Resolved Path to the saved file

        Raises:
            ValueError: If file extension is not .parquet or .csv
        """
        path = Path(path)
        _check_extension(path)
        return _write(self.to_dataframe(limit=limit), path)

    def close(self) -> None:
        """Close the transport if this stream created it."""
        if self._owns_transport:
            self.transport.close()

    def __enter__(self) -> "CursorStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Public API: Async methods
    # -------------------------------------------------------------------------

    async def get_page_async(self, config: Optional[QueryConfig] = None) -> Page:
        """Async version of get_page()."""
        config = config or self._checked_config()
        cursor = self.current_cursor
        page = await PageFetcher(self.transport).afetch_page(cursor, config)
        self._advance(cursor, page)
        return page

    def documents_async(self) -> AsyncIterator[dict[str, Any]]:
        """
        Async version of documents().

        Example:
            async for doc in stream.documents_async():
                print(doc["id"])
        """
        return self._aiter_documents(self._checked_config())

    async def _aiter_documents(self, config: QueryConfig) -> AsyncIterator[dict[str, Any]]:
        while self.has_more:
            page = await self.get_page_async(config)
            for doc in page.docs:
                yield doc

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self.documents_async()

    async def to_dataframe_async(
        self,
        limit: Optional[int] = None,
        parse_dates: Sequence[str] = (),
    ) -> pd.DataFrame:
        """Async version of to_dataframe()."""
        records: list[dict[str, Any]] = []
        if limit != 0:
            async for doc in self.documents_async():
                records.append(doc)
                if limit is not None and len(records) >= limit:
                    break
        return records_to_dataframe(records, columns=self._columns(), parse_dates=parse_dates)

    async def save_async(self, path: str | Path, limit: Optional[int] = None) -> Path:
        """Async version of save()."""
        path = Path(path)
        _check_extension(path)
        return _write(await self.to_dataframe_async(limit=limit), path)

    async def aclose(self) -> None:
        """Async version of close()."""
        if self._owns_transport:
            await self.transport.aclose()

    async def __aenter__(self) -> "CursorStream":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()

    def _columns(self) -> Optional[list[str]]:
        # Wildcards, aliases and functions in fl don't map to column names
        if self.fields and all(_PLAIN_FIELD.match(f) for f in self.fields):
            return list(self.fields)
        return None


def _check_extension(path: Path) -> None:
    if path.suffix not in (".parquet", ".csv"):
        raise ValueError(f"Unsupported file extension: {path.suffix}. Use .parquet or .csv")


def _write(df: pd.DataFrame, path: Path) -> Path:
    if path.suffix == ".parquet":
        df.to_parquet(path, index=False)
    else:
        df.to_csv(path, index=False)
    return path.resolve()
