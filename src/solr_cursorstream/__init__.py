"""
solr-cursorstream - Stream every document matching a Solr query, a page at a time.

Quick Start
-----------
    from solr_cursorstream import CursorStream

    stream = CursorStream("http://localhost:8983/solr/books", filters=["format:ebook"])
    for doc in stream:
        print(doc["id"])

Configuration
-------------
Pass settings to CursorStream directly, or set these environment
variables (or use a .env file) and call CursorStream.from_settings():

    SOLR_URL         - URL of the Solr core (required)
    SOLR_HANDLER     - Request handler (default: select)
    SOLR_QUERY       - Main query (default: *:*)
    SOLR_FILTERS     - JSON list of filter queries (default: ["*:*"])
    SOLR_SORT        - Sort spec; must include the uniqueKey (default: id asc)
    SOLR_BATCH_SIZE  - Documents per request (default: 100)
    SOLR_FIELDS      - JSON list of fields to return (default: all)

Async
-----
    async with CursorStream("http://localhost:8983/solr/books") as stream:
        async for doc in stream:
            print(doc["id"])

Exceptions
----------
    ConfigurationError  - handler, filters or batch_size missing
    TransportError      - Connection failure or non-success HTTP status
    RateLimitError      - HTTP 429 (see retry_after)
    DecodeError         - Response isn't a cursorMark page
"""

__version__ = "0.2.0"

from solr_cursorstream.stream import CursorStream
from solr_cursorstream.page import Page
from solr_cursorstream.fetcher import PageFetcher, QueryConfig, build_params
from solr_cursorstream.transport import HttpxTransport
from solr_cursorstream.config import SolrSettings
from solr_cursorstream.exceptions import (
    CursorStreamError,
    ConfigurationError,
    TransportError,
    RateLimitError,
    DecodeError,
)

__all__ = [
    "CursorStream",
    "Page",
    "PageFetcher",
    "QueryConfig",
    "build_params",
    "HttpxTransport",
    "SolrSettings",
    "CursorStreamError",
    "ConfigurationError",
    "TransportError",
    "RateLimitError",
    "DecodeError",
    "__version__",
]
