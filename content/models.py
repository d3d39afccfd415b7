"""
content/models.py -- Domain dataclasses for site content.

Pure data containers. Localized text is stored as zh/en column pairs and
carried here as LocalizedText so routes can map straight to {zh, en} JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class LocalizedText:
    zh: str = ""
    en: str = ""


@dataclass
class Product:
    """A catalogue entry. status is "active" or "inactive"; only active ones are public."""

    name: LocalizedText
    description: LocalizedText
    category: str
    id: Optional[str] = None
    images: list[str] = field(default_factory=list)
    specifications: list[dict[str, Any]] = field(default_factory=list)
    price: Optional[float] = None
    featured: bool = False
    status: str = "active"
    order: int = 0
    created_at: str = ""
    updated_at: str = ""


@dataclass
class NewsArticle:
    """A news post. status is "published" or "draft"; only published ones are public."""

    title: LocalizedText
    content: LocalizedText
    category: str
    id: Optional[str] = None
    summary: LocalizedText = field(default_factory=LocalizedText)
    cover_image: Optional[str] = None
    author: str = "Admin"
    views: int = 0
    status: str = "published"
    published_at: str = ""
    created_at: str = ""
    updated_at: str = ""


@dataclass
class ContactMessage:
    """A message left through the public contact form. status: unread | read | replied."""

    name: str
    email: str
    phone: str
    subject: str
    message: str
    id: Optional[str] = None
    company: Optional[str] = None
    status: str = "unread"
    reply: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class SiteSettings:
    """The single settings row. homepage_content is an opaque JSON object."""

    id: str
    site_name: LocalizedText
    site_description: LocalizedText
    logo: Optional[str] = None
    favicon: Optional[str] = None
    address: LocalizedText = field(default_factory=LocalizedText)
    phone: Optional[str] = None
    email: Optional[str] = None
    about: LocalizedText = field(default_factory=LocalizedText)
    banners: list[Any] = field(default_factory=list)
    homepage_content: dict[str, Any] = field(default_factory=dict)
    updated_at: str = ""
