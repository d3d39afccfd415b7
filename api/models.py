"""
API request and response models for siteadmin REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
content/models.py, which own the internal domain representation. Route
handlers map between the two.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import KNOWN_ROLES

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Every non-2xx response body: {"error": {"code", "message", "detail"?}}."""

    error: ErrorDetail


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProductStatusEnum(str, Enum):
    active = "active"
    inactive = "inactive"


class NewsStatusEnum(str, Enum):
    published = "published"
    draft = "draft"


class ContactStatusEnum(str, Enum):
    unread = "unread"
    read = "read"
    replied = "replied"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=128)


class PrincipalResponse(BaseModel):
    """Public view of a principal. Never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: str
    role: str
    avatar: Optional[str] = None
    is_active: bool = True
    last_login: Optional[str] = None
    created_at: str = ""


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    principal: PrincipalResponse


def _check_known_role(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in KNOWN_ROLES:
        raise ValueError(f"role must be one of {sorted(KNOWN_ROLES)}")
    return value


class UserCreate(BaseModel):
    """Request body for POST /api/v1/auth/users (admin only)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=128)
    role: str = "editor"

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        return _check_known_role(v)


class UserPatch(BaseModel):
    """Request body for PATCH /api/v1/auth/users/{id}. Omitted fields are unchanged."""

    role: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Optional[str]) -> Optional[str]:
        return _check_known_role(v)


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: Optional[str] = Field(default=None, min_length=1, max_length=255)
    avatar: Optional[str] = Field(default=None, max_length=1000)


class PasswordChange(BaseModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=8, max_length=128)


# ---------------------------------------------------------------------------
# Content -- shared
# ---------------------------------------------------------------------------


class Localized(BaseModel):
    """A {zh, en} pair. Both languages are required for primary fields."""

    model_config = ConfigDict(str_strip_whitespace=True)

    zh: str = Field(min_length=1)
    en: str = Field(min_length=1)


class OptionalLocalized(BaseModel):
    zh: str = ""
    en: str = ""


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductIn(BaseModel):
    """Request body for POST/PUT /api/v1/products."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Localized
    description: Localized
    category: str = Field(min_length=1, max_length=100)
    images: list[str] = Field(default_factory=list, max_length=20)
    specifications: list[dict[str, Any]] = Field(default_factory=list, max_length=50)
    price: Optional[float] = Field(default=None, ge=0)
    featured: bool = False
    status: ProductStatusEnum = ProductStatusEnum.active
    order: int = 0


class ProductOut(BaseModel):
    id: str
    name: OptionalLocalized
    description: OptionalLocalized
    category: str
    images: list[str]
    specifications: list[dict[str, Any]]
    price: Optional[float]
    featured: bool
    status: str
    order: int
    created_at: str
    updated_at: str


class ProductList(BaseModel):
    data: list[ProductOut]
    pagination: Pagination


# ---------------------------------------------------------------------------
# News
# ---------------------------------------------------------------------------


class NewsIn(BaseModel):
    """Request body for POST/PUT /api/v1/news."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Localized
    content: Localized
    summary: OptionalLocalized = Field(default_factory=OptionalLocalized)
    category: str = Field(min_length=1, max_length=100)
    cover_image: Optional[str] = Field(default=None, max_length=1000)
    author: str = Field(default="Admin", max_length=255)
    status: NewsStatusEnum = NewsStatusEnum.published


class NewsOut(BaseModel):
    id: str
    title: OptionalLocalized
    content: OptionalLocalized
    summary: OptionalLocalized
    category: str
    cover_image: Optional[str]
    author: str
    views: int
    status: str
    published_at: str
    created_at: str
    updated_at: str


class NewsList(BaseModel):
    data: list[NewsOut]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


class ContactIn(BaseModel):
    """Request body for the public POST /api/v1/contacts."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    phone: str = Field(min_length=1, max_length=50)
    company: Optional[str] = Field(default=None, max_length=255)
    subject: str = Field(default="", max_length=255)
    message: str = Field(min_length=1, max_length=5000)


class ContactStatusUpdate(BaseModel):
    status: ContactStatusEnum
    reply: Optional[str] = Field(default=None, max_length=5000)


class ContactOut(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    company: Optional[str]
    subject: str
    message: str
    status: str
    reply: Optional[str]
    created_at: str
    updated_at: str


class ContactList(BaseModel):
    data: list[ContactOut]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Site settings
# ---------------------------------------------------------------------------


class SettingsIn(BaseModel):
    """Request body for PUT /api/v1/settings (admin only)."""

    site_name: Localized
    site_description: OptionalLocalized = Field(default_factory=OptionalLocalized)
    logo: Optional[str] = None
    favicon: Optional[str] = None
    address: OptionalLocalized = Field(default_factory=OptionalLocalized)
    phone: Optional[str] = None
    email: Optional[str] = None
    about: OptionalLocalized = Field(default_factory=OptionalLocalized)
    banners: list[Any] = Field(default_factory=list)
    homepage_content: dict[str, Any] = Field(default_factory=dict)


class SettingsOut(SettingsIn):
    id: str
    site_name: OptionalLocalized
    updated_at: str
