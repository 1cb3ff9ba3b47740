"""
Book Record Models

BookRecord is the single result of a scan. Every field is optional: a missing
value means "unknown", never an error. A record is built fresh for each scan
and is never merged with an earlier one.

Usage:
    from book_scanner.models.book import BookRecord

    record = BookRecord.from_llm_payload({"title": "שירי אהבה", "authors": ["יהודה עמיחי"]})
    if not record.has_usable_title:
        record = BookRecord.not_identified()
"""

from typing import Any, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field

NOT_IDENTIFIED_TITLE = "Identification Failed"
NOT_IDENTIFIED_DESCRIPTION = "AI is online but this book isn't in its index."
SEARCH_URL_TEMPLATE = "https://www.google.com/search?q={query}"

# Plain string fields accepted from the LLM reply
_TEXT_FIELDS = ("title", "publisher", "year", "description", "language", "isbn13")


def _clean_text(value: Any) -> Optional[str]:
    """Normalize a scalar LLM value to a stripped string, or None if blank."""
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    cleaned = str(value).strip()
    return cleaned or None


def _clean_authors(value: Any) -> Optional[list[str]]:
    """Normalize the authors field to a list of non-blank names."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return None
    authors = [a.strip() for a in value if isinstance(a, str) and a.strip()]
    return authors or None


class BookRecord(BaseModel):
    """Bibliographic metadata identified for one scanned cover."""

    title: Optional[str] = None
    authors: Optional[list[str]] = None
    publisher: Optional[str] = None
    year: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None
    isbn13: Optional[str] = None
    cover_uri: Optional[str] = Field(default=None, description="HTTPS thumbnail URL")
    identified: bool = True

    @classmethod
    def from_llm_payload(cls, payload: dict[str, Any]) -> "BookRecord":
        """
        Build a record from a decoded LLM JSON object.

        Blank strings become None, a lone author string becomes a one-item
        list, numeric years become strings, and unknown keys are dropped.
        """
        fields = {name: _clean_text(payload.get(name)) for name in _TEXT_FIELDS}
        return cls(authors=_clean_authors(payload.get("authors")), **fields)

    @classmethod
    def not_identified(cls) -> "BookRecord":
        """Placeholder for a pipeline that ran correctly but found no book."""
        return cls(
            title=NOT_IDENTIFIED_TITLE,
            description=NOT_IDENTIFIED_DESCRIPTION,
            identified=False,
        )

    @property
    def has_usable_title(self) -> bool:
        """Check if the record carries a non-blank title."""
        return bool(self.title and self.title.strip())

    @property
    def search_url(self) -> Optional[str]:
        """Web search link for an identified title."""
        if not self.identified or not self.has_usable_title:
            return None
        return SEARCH_URL_TEMPLATE.format(query=quote(self.title.strip()))
