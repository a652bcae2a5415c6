# backend/app/schemas/admin.py
"""
Payload schemas for authorized admin operations.

Each action's `data` object is validated against one of these models
after the session gate has passed.
"""
import re
from typing import Annotated, Any, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.]{1,100}$")


def check_http_url(value: Optional[str]) -> Optional[str]:
    """Empty → None; anything else must be an absolute http(s) URL."""
    if value is None or not value.strip():
        return None
    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("must be a valid http/https URL")
    return value


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


HttpUrlStr = Annotated[Optional[str], AfterValidator(check_http_url)]
OptionalText = Annotated[Optional[str], AfterValidator(_blank_to_none)]


class AdminOperationRequest(BaseModel):
    # Loosely typed: the session gate has to run before anything in the body
    # can be rejected, so shape checks happen in AdminOperations.run
    model_config = ConfigDict(populate_by_name=True)

    action: Any = None
    session_token: Any = Field(default=None, alias="sessionToken")
    data: Any = None


class _Payload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class IdPayload(_Payload):
    id: int


# --- Projects ----------------------------------------------------------------

class ProjectCreate(_Payload):
    title: str = Field(..., min_length=1, max_length=200)
    description: OptionalText = Field(default=None, max_length=1000)
    image_url: HttpUrlStr = None
    category: OptionalText = Field(default=None, max_length=100)
    link: HttpUrlStr = None


class ProjectUpdate(_Payload):
    id: int
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: OptionalText = Field(default=None, max_length=1000)
    image_url: HttpUrlStr = None
    category: OptionalText = Field(default=None, max_length=100)
    link: HttpUrlStr = None

    @field_validator("title")
    @classmethod
    def _title_not_null(cls, v: Optional[str]) -> str:
        # Only runs when the key is sent; omitting it leaves the title alone
        if v is None:
            raise ValueError("title cannot be null")
        return v


class ProjectResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    image_url: Optional[str]
    category: Optional[str]
    link: Optional[str]

    class Config:
        from_attributes = True


class ProjectImageIn(_Payload):
    image_url: str
    is_primary: bool = False
    display_order: Optional[int] = None

    @field_validator("image_url")
    @classmethod
    def _url_required(cls, v: str) -> str:
        url = check_http_url(v)
        if url is None:
            raise ValueError("must be a valid http/https URL")
        return url


class ProjectImagesCreate(_Payload):
    project_id: int
    images: List[ProjectImageIn]


class ProjectImageUpdate(_Payload):
    id: int
    is_primary: Optional[bool] = None
    display_order: Optional[int] = None


class PrimaryImage(_Payload):
    project_id: int
    image_id: int


# --- Categories / social links / settings -------------------------------------

class CategoryCreate(_Payload):
    name: str = Field(..., min_length=1, max_length=100)


class CategoryResponse(BaseModel):
    id: int
    name: str
    is_default: bool

    class Config:
        from_attributes = True


class SocialLinksUpdate(_Payload):
    instagram: Optional[str] = None
    telegram: Optional[str] = None

    @field_validator("instagram", "telegram")
    @classmethod
    def _username(cls, v: Optional[str]) -> Optional[str]:
        if v and not USERNAME_PATTERN.match(v):
            raise ValueError("use only letters, numbers, underscores and dots (1-100 chars)")
        return v


class SettingUpdate(_Payload):
    # The TOTP secret is deliberately not writable through this path
    key: Literal["og_image"]
    value: HttpUrlStr = Field(default=None, max_length=1000)


# --- Store ---------------------------------------------------------------------

class OrderStatusUpdate(_Payload):
    order_id: int
    status: Literal["pending", "accepted", "rejected"]


class StoreProductCreate(_Payload):
    name: str = Field(..., min_length=1, max_length=200)
    description: OptionalText = Field(default=None, max_length=2000)
    disclaimer: OptionalText = Field(default=None, max_length=1000)
    image_url: HttpUrlStr = None
    is_active: bool = True
    display_order: int = 0


class StoreOrderResponse(BaseModel):
    id: int
    product_id: int
    customer_name: str
    customer_email: str
    telegram_username: Optional[str]
    instagram_username: Optional[str]
    status: str

    class Config:
        from_attributes = True
