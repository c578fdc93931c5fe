"""A single page of cursor results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from solr_cursorstream.exceptions import DecodeError


class _ResponseSection(BaseModel):
    num_found: int = Field(alias="numFound", ge=0)
    docs: list[dict[str, Any]]


class _CursorBody(BaseModel):
    response: _ResponseSection
    next_cursor_mark: str = Field(alias="nextCursorMark")


class Page(BaseModel):
    """
    One batch of documents returned by a single cursor request.

    Attributes:
        docs: Solr documents in server order, as plain dicts
        num_found: Total number of matches for the query
        cursor: The nextCursorMark to send with the following request

    Example:
        page = Page.from_body(response.json())
        for doc in page.docs:
            print(doc["id"])
    """

    model_config = ConfigDict(frozen=True)

    docs: list[dict[str, Any]]
    num_found: int
    cursor: str

    @classmethod
    def from_body(cls, body: Any) -> "Page":
        """
        Build a Page from a decoded Solr JSON response.

        Args:
            body: Parsed JSON body of a cursorMark request

        Returns:
            Page with the docs, numFound and nextCursorMark of the body

        Raises:
            DecodeError: If the body doesn't have the cursor response shape
        """
        try:
            parsed = _CursorBody.model_validate(body)
        except ValidationError as e:
            raise DecodeError(f"Unexpected Solr response shape: {e}") from e

        return cls(
            docs=parsed.response.docs,
            num_found=parsed.response.num_found,
            cursor=parsed.next_cursor_mark,
        )

    def __len__(self) -> int:
        return len(self.docs)
