from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

PHONE_PATTERN = r"^[+]?[0-9\s\-()]+$"


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class InstitutionCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    address: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=20, pattern=PHONE_PATTERN)
    email: EmailStr | None = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("address", "phone", "email", mode="before")
    @classmethod
    def empty_is_none(cls, value):
        return _blank_to_none(value)

    @field_validator("email")
    @classmethod
    def email_length(cls, value):
        if value is not None and len(value) > 100:
            raise ValueError("El email no puede exceder 100 caracteres")
        return value


class InstitutionUpdate(InstitutionCreate):
    name: str | None = Field(None, min_length=2, max_length=100)


class InstitutionOut(BaseModel):
    id: str
    name: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InstitutionListItem(InstitutionOut):
    courses_count: int = 0
    students_count: int = 0
    professors_count: int = 0


class InstitutionPage(BaseModel):
    institutions: List[InstitutionListItem]
    total: int
    page: int
    limit: int
    hasMore: bool


SortField = Literal["name", "created_at"]
SortOrder = Literal["asc", "desc"]


class InstitutionStatsBatch(BaseModel):
    institution_ids: List[str] = Field(default_factory=list, alias="institutionIds")

    class Config:
        populate_by_name = True
