"""Typed payloads for the offline store and sync queue.

Field names on the wire (and in the local database) are camelCase, as the
remote API expects; attributes are snake_case.

Queue entries are a tagged union over the two write kinds:
- progress: ProgressRecord
- assignment_submission: AssignmentSubmission
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Optional fields left off the wire while unset
    _omit_if_none: ClassVar[tuple[str, ...]] = ()

    def to_wire(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict with camelCase keys.

        Null values are kept, except for the optional fields named in
        _omit_if_none, which are dropped while unset.
        """
        omitted = {name for name in self._omit_if_none if getattr(self, name) is None}
        return self.model_dump(mode="json", by_alias=True, exclude=omitted)


# =============================================================================
# PAYLOADS
# =============================================================================


class ProgressRecord(_WireModel):
    """Progress of one student on one content item."""

    id: str | None = None
    student_id: str = Field(..., min_length=1)
    content_item_id: str = Field(..., min_length=1)
    progress_percentage: int = Field(default=0, ge=0, le=100)
    score: int | None = None
    time_spent: int = Field(default=0, ge=0)
    completed_at: str | None = None

    _omit_if_none: ClassVar[tuple[str, ...]] = ("id", "score", "completed_at")

    @property
    def key(self) -> str:
        """Local cache key; defaults to the student/content pair."""
        return self.id or f"{self.student_id}:{self.content_item_id}"


class AssignmentSubmission(_WireModel):
    """Answers submitted by a student for an assignment."""

    assignment_id: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    answers: Any
    submitted_at: str | None = None

    _omit_if_none: ClassVar[tuple[str, ...]] = ("submitted_at",)

    @field_validator("answers")
    @classmethod
    def answers_not_null(cls, value: Any) -> Any:
        """Answers may be empty but never null."""
        if value is None:
            raise ValueError("answers must not be null")
        return value


class ContentItem(_WireModel):
    """Cached lesson/quiz content.

    Only the key and category are interpreted; everything else the
    platform sends (titles, multilingual content, media flags) is kept.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    id: str = Field(..., min_length=1)
    category_id: str


# =============================================================================
# SYNC QUEUE
# =============================================================================


class ProgressWrite(BaseModel):
    """Pending progress upsert."""

    type: Literal["progress"] = "progress"
    data: ProgressRecord


class AssignmentSubmissionWrite(BaseModel):
    """Pending assignment submission."""

    type: Literal["assignment_submission"] = "assignment_submission"
    data: AssignmentSubmission


PendingWrite = Annotated[
    Union[ProgressWrite, AssignmentSubmissionWrite],
    Field(discriminator="type"),
]


class SyncQueueEntry(BaseModel):
    """A queued write awaiting delivery."""

    id: int
    timestamp: int  # epoch milliseconds
    write: PendingWrite

    @property
    def type(self) -> str:
        return self.write.type
