"""Pydantic schemas for archive request bodies.

These schemas validate incoming JSON before it reaches the repositories.
"""

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Gender = Literal["male", "female", "other", "unknown"]


class PersonCreate(BaseModel):
    """A new family member."""

    full_name: str = Field(min_length=2, max_length=100, description="Full name")
    gender: Gender = Field(default="unknown")
    birth_date: date | None = None
    death_date: date | None = None
    biography: str | None = None
    avatar_url: str | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "PersonCreate":
        if self.birth_date and self.death_date and self.death_date < self.birth_date:
            raise ValueError("death_date must not be before birth_date")
        return self


class PersonUpdate(BaseModel):
    """Partial update of a family member; at least one field is required."""

    full_name: str | None = Field(default=None, min_length=2, max_length=100)
    gender: Gender | None = None
    birth_date: date | None = None
    death_date: date | None = None
    biography: str | None = None
    avatar_url: str | None = None

    @field_validator("full_name", "gender")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @model_validator(mode="after")
    def check_not_empty(self) -> "PersonUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class DocumentUpdate(BaseModel):
    """Editable document fields."""

    person_id: str | None = None
    document_type: str | None = None
    extracted_text: str | None = None
    clean_text: str | None = None
    confidence_score: float | None = Field(default=None, ge=0.0, le=100.0)
    tags: dict[str, Any] | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class PhotoUpdate(BaseModel):
    """Editable photo fields."""

    person_id: str | None = None
    event_name: str | None = None
    date_taken: date | None = None
    detected_faces: int | None = Field(default=None, ge=0)
    width: int | None = Field(default=None, ge=1)
    height: int | None = Field(default=None, ge=1)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class RelationshipCreate(BaseModel):
    """A relationship edge to add.

    Fields are optional here so the store can report every missing field at
    once; a value of the wrong type is rejected by pydantic.
    """

    model_config = ConfigDict(populate_by_name=True)

    person_id: str | None = Field(default=None, alias="personId")
    relative_id: str | None = Field(default=None, alias="relativeId")
    relation_type: str | None = Field(default=None, alias="relationType")
