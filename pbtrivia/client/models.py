"""Record schemas for backend collections and the payload narrowing helper."""

from __future__ import annotations

from typing import Any, Generic, Literal, Optional, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .errors import BackendError


class RecordModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    collection_id: str = ""
    collection_name: str = ""
    created: Optional[str] = None
    updated: Optional[str] = None


class UserRecord(RecordModel):
    email: str = ""
    display_name: str = ""
    verified: bool = False


class GameRecord(RecordModel):
    host: str
    name: str
    code: str
    status: str
    current_round: int = Field(default=0, ge=0)
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @field_validator("started_at", "completed_at", mode="before")
    @classmethod
    def _blank_date_is_unset(cls, value: Any) -> Any:
        if value == "":
            return None
        return value


class QuestionRecord(RecordModel):
    category: str
    subcategory: str = ""
    difficulty: Literal["easy", "medium", "hard"]
    question: str
    a: str
    b: str
    c: str
    d: str
    level: str = ""
    metadata: Optional[dict[str, Any]] = None

    def choices(self) -> dict[str, str]:
        return {"a": self.a, "b": self.b, "c": self.c, "d": self.d}


RecordT = TypeVar("RecordT", bound=RecordModel)


class ListResult(BaseModel, Generic[RecordT]):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    page: int
    per_page: int
    total_items: int
    total_pages: int
    items: list[RecordT]


class GameUpdate(BaseModel):
    """Partial game update; only fields that were set are sent."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    code: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


def narrow(model: type[RecordT], payload: Any) -> RecordT:
    """Validate a backend payload against ``model``.

    Undocumented fields are dropped; a payload missing documented fields is a
    backend error rather than a crash deep inside the caller.
    """
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise BackendError(f"Malformed {model.__name__} payload: {exc.error_count()} invalid field(s)") from exc


def narrow_list(model: type[RecordT], payload: Any) -> ListResult[RecordT]:
    try:
        return ListResult[model].model_validate(payload)  # type: ignore[valid-type]
    except pydantic.ValidationError as exc:
        raise BackendError(f"Malformed {model.__name__} list payload: {exc.error_count()} invalid field(s)") from exc
