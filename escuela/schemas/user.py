from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """Identidad verificada del proveedor externo para la petición actual."""

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class UserOut(BaseModel):
    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    role: str
    permissions: List[str] = []
    institution_id: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    role: Literal["admin", "director", "profesor", "user"] | None = None
    permissions: List[str] | None = None
    institution_id: str | None = None


class SetupFirstAdminRequest(BaseModel):
    clerk_id: str = Field(alias="clerkId", min_length=1)
    email: str | None = None
    name: str | None = None

    class Config:
        populate_by_name = True


class WebhookEvent(BaseModel):
    type: str
    data: dict = {}
