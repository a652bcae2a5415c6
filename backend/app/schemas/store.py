# backend/app/schemas/store.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.schemas.admin import USERNAME_PATTERN


class OrderCreate(BaseModel):
    """Public order form. Orders always start as "pending"."""
    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: int
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    telegram_username: Optional[str] = None
    instagram_username: Optional[str] = None

    @field_validator("telegram_username", "instagram_username")
    @classmethod
    def _username(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if not USERNAME_PATTERN.match(v.lstrip("@")):
            raise ValueError("invalid username")
        return v.lstrip("@")


class OrderCreatedResponse(BaseModel):
    success: bool = True
    order_id: int


class StoreStatsResponse(BaseModel):
    completed_orders: int
