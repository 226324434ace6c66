"""
Core data models for bookfacts.

This module defines the Pydantic models shared by the extractor, the query
board and the CLI.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Wire keys of the six-field record, in output order
BOOK_INFO_KEYS = ("title", "author", "publisher", "publicationYear", "genre", "language")


# =============================================================================
# Enums
# =============================================================================


class SlotStatus(str, Enum):
    """Derived state of a query slot."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# =============================================================================
# Extraction Models
# =============================================================================


class BookInfo(BaseModel):
    """
    Facts about a book stated explicitly in a query.

    Every field is a raw string; anything the query does not mention is "".
    The year stays a string so partial expressions ("1990년대") survive.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    title: str = Field("", description="Title of the book")
    author: str = Field("", description="Author's name")
    publisher: str = Field("", description="Publisher's name")
    publication_year: str = Field("", alias="publicationYear", description="Year of publication as written")
    genre: str = Field("", description="Genre of the book")
    language: str = Field("", description="Language of the book")

    @field_validator("publication_year", mode="before")
    @classmethod
    def keep_year_as_text(cls, v: Any) -> Any:
        """Models sometimes emit the year as a bare number."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def is_empty(self) -> bool:
        """True when nothing at all was extracted."""
        return not any(self.to_wire().values())

    def to_wire(self) -> dict[str, str]:
        """Return the record keyed by its JSON names."""
        return self.model_dump(by_alias=True)

    def to_display_json(self) -> str:
        """Pretty JSON as shown in the answer panel."""
        return self.model_dump_json(by_alias=True, indent=2)


# =============================================================================
# Board Models
# =============================================================================


class QuerySlot(BaseModel):
    """
    One of the five fixed question/answer positions.

    `result` and `error` are never both set; use the transition methods
    rather than assigning them directly.
    """

    index: int = Field(..., ge=0, description="Fixed position of the slot")
    question: str = Field("", description="Free-text question")
    result: Optional[BookInfo] = Field(None, description="Last successful extraction")
    error: Optional[str] = Field(None, description="Last failure message")
    is_loading: bool = Field(False, description="An extraction is in flight")
    generation: int = Field(0, ge=0, description="Number of runs dispatched for this slot")

    @property
    def status(self) -> SlotStatus:
        if self.is_loading:
            return SlotStatus.LOADING
        if self.error is not None:
            return SlotStatus.FAILED
        if self.result is not None:
            return SlotStatus.SUCCEEDED
        return SlotStatus.IDLE

    @property
    def has_question(self) -> bool:
        return bool(self.question.strip())

    def reject(self, message: str) -> None:
        """Record a validation failure without starting a run."""
        self.result = None
        self.error = message

    def start(self) -> int:
        """Enter the loading state and return the new run generation."""
        self.generation += 1
        self.is_loading = True
        self.result = None
        self.error = None
        return self.generation

    def succeed(self, result: BookInfo) -> None:
        self.error = None
        self.result = result

    def fail(self, message: str) -> None:
        self.result = None
        self.error = message

    def finish(self) -> None:
        self.is_loading = False
