"""Configuration management via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SolrSettings(BaseSettings):
    """
    Solr cursor stream configuration.

    All values are read from environment variables prefixed with SOLR_.
    A .env file in the current directory is loaded automatically.
    List values (filters, fields) are given as JSON arrays.

    Attributes:
        url: URL of the Solr core, e.g. http://localhost:8983/solr/mycore
        handler: Request handler to target
        query: Main query (q)
        filters: Filter queries (fq)
        sort: Sort spec; must include the core's uniqueKey field
        batch_size: Documents fetched per request (rows)
        fields: Fields to return (fl); empty means all fields
        timeout: HTTP timeout in seconds
        max_retries: Extra attempts for failed requests

    Example:
        # Set environment variables:
        # SOLR_URL=http://localhost:8983/solr/books
        # SOLR_FILTERS='["format:ebook"]'
        # SOLR_BATCH_SIZE=500

        settings = SolrSettings()
        print(settings.solr_url)
    """

    url: str
    handler: str = "select"
    query: str = "*:*"
    filters: list[str] = Field(default_factory=lambda: ["*:*"])
    sort: str = "id asc"
    batch_size: int = Field(default=100, gt=0)
    fields: list[str] = Field(default_factory=list)
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=2, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="SOLR_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def solr_url(self) -> str:
        """Construct the handler URL from the core URL and handler."""
        return f"{self.url.rstrip('/')}/{self.handler}"
