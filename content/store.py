"""
content/store.py -- SQLAlchemy Core persistence layer for site content.

Pattern: Repository + Data Mapper (same as auth/store.py). ContentStore is
the repository; the _row_to_* functions are the mappers. Routes never touch
SQL directly.

Schema ownership: tables are created by migrations/ (001_initial_schema,
003_homepage_content). The Table objects below mirror that DDL for query
building only.

JSON columns (images, specifications, banners, homepage_content) are stored
as TEXT and (de)serialized here, so callers only see Python lists/dicts.

Security: all queries use bound parameters. LIKE patterns are built from the
search term as a parameter value, never spliced into SQL.
"""

from __future__ import annotations

import json
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text, func, or_, select
from sqlalchemy.engine import Engine

from content.models import ContactMessage, LocalizedText, NewsArticle, Product, SiteSettings

# ---------------------------------------------------------------------------
# Schema (mirror of migrations/)
# ---------------------------------------------------------------------------

_metadata = MetaData()

_products = Table(
    "products",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("name_zh", Text, nullable=False),
    Column("name_en", Text, nullable=False),
    Column("description_zh", Text, nullable=False),
    Column("description_en", Text, nullable=False),
    Column("category", String(100), nullable=False),
    Column("images", Text, nullable=False),
    Column("specifications", Text, nullable=False),
    Column("price", Float),
    Column("featured", Integer, nullable=False),
    Column("status", String(20), nullable=False),
    Column("sort_order", Integer, nullable=False),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

_news = Table(
    "news",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("title_zh", Text, nullable=False),
    Column("title_en", Text, nullable=False),
    Column("content_zh", Text, nullable=False),
    Column("content_en", Text, nullable=False),
    Column("summary_zh", Text),
    Column("summary_en", Text),
    Column("category", String(100), nullable=False),
    Column("cover_image", Text),
    Column("author", String(255), nullable=False),
    Column("views", Integer, nullable=False),
    Column("status", String(20), nullable=False),
    Column("published_at", Text, nullable=False),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

_contacts = Table(
    "contacts",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("phone", String(50), nullable=False),
    Column("company", String(255)),
    Column("subject", Text, nullable=False),
    Column("message", Text, nullable=False),
    Column("status", String(20), nullable=False),
    Column("reply", Text),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

_settings = Table(
    "settings",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("site_name_zh", Text, nullable=False),
    Column("site_name_en", Text, nullable=False),
    Column("site_description_zh", Text, nullable=False),
    Column("site_description_en", Text, nullable=False),
    Column("logo", Text),
    Column("favicon", Text),
    Column("address_zh", Text),
    Column("address_en", Text),
    Column("phone", Text),
    Column("email", Text),
    Column("about_zh", Text),
    Column("about_en", Text),
    Column("banners", Text, nullable=False),
    Column("homepage_content", Text),
    Column("updated_at", Text, nullable=False),
)

FEATURED_PRODUCTS_LIMIT = 8


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


def _loads(raw: Optional[str], default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return default


def _escape_like(term: str) -> str:
    """Make %, _ and the escape char match literally in a LIKE pattern."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def page_count(total: int, limit: int) -> int:
    """Number of pages needed for total rows at limit per page."""
    return math.ceil(total / limit) if limit > 0 else 0


class ContentStore:
    """Repository for products, news, contact messages and the settings row.

    Usage:
        store = ContentStore(engine)
        pid = store.create_product(product)
        rows, total = store.list_products(page=1, limit=10, category="machinery")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(
        self,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        featured: bool = False,
        search: Optional[str] = None,
    ) -> tuple[list[Product], int]:
        """Return one page of active products and the total matching count."""
        conditions = [_products.c.status == "active"]
        if category:
            conditions.append(_products.c.category == category)
        if featured:
            conditions.append(_products.c.featured == 1)
        if search:
            pattern = f"%{_escape_like(search)}%"
            conditions.append(
                or_(
                    _products.c.name_zh.like(pattern, escape="\\"),
                    _products.c.name_en.like(pattern, escape="\\"),
                )
            )

        with self.engine.connect() as conn:
            total = conn.execute(select(func.count()).select_from(_products).where(*conditions)).scalar() or 0
            rows = conn.execute(
                _products.select()
                .where(*conditions)
                .order_by(_products.c.sort_order.asc(), _products.c.created_at.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            ).fetchall()
        return [_row_to_product(r) for r in rows], total

    def featured_products(self, limit: int = FEATURED_PRODUCTS_LIMIT) -> list[Product]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                _products.select()
                .where((_products.c.status == "active") & (_products.c.featured == 1))
                .order_by(_products.c.sort_order.asc())
                .limit(limit)
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def get_product(self, product_id: str) -> Optional[Product]:
        with self.engine.connect() as conn:
            row = conn.execute(_products.select().where(_products.c.id == product_id)).fetchone()
        return _row_to_product(row) if row is not None else None

    def create_product(self, product: Product) -> str:
        """Insert a product and return its generated id."""
        product_id = _new_id()
        now = _now_iso()
        with self.engine.begin() as conn:
            conn.execute(
                _products.insert().values(id=product_id, created_at=now, updated_at=now, **_product_values(product))
            )
        return product_id

    def update_product(self, product_id: str, product: Product) -> bool:
        """Replace a product's editable fields. Returns False if the id is unknown."""
        with self.engine.begin() as conn:
            result = conn.execute(
                _products.update()
                .where(_products.c.id == product_id)
                .values(updated_at=_now_iso(), **_product_values(product))
            )
        return result.rowcount > 0

    def delete_product(self, product_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(_products.delete().where(_products.c.id == product_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # News
    # ------------------------------------------------------------------

    def list_news(self, page: int = 1, limit: int = 10, category: Optional[str] = None) -> tuple[list[NewsArticle], int]:
        """Return one page of published articles (newest first) and the total count."""
        conditions = [_news.c.status == "published"]
        if category:
            conditions.append(_news.c.category == category)

        with self.engine.connect() as conn:
            total = conn.execute(select(func.count()).select_from(_news).where(*conditions)).scalar() or 0
            rows = conn.execute(
                _news.select()
                .where(*conditions)
                .order_by(_news.c.published_at.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            ).fetchall()
        return [_row_to_news(r) for r in rows], total

    def latest_news(self, limit: int = 5) -> list[NewsArticle]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                _news.select().where(_news.c.status == "published").order_by(_news.c.published_at.desc()).limit(limit)
            ).fetchall()
        return [_row_to_news(r) for r in rows]

    def get_news(self, news_id: str) -> Optional[NewsArticle]:
        with self.engine.connect() as conn:
            row = conn.execute(_news.select().where(_news.c.id == news_id)).fetchone()
        return _row_to_news(row) if row is not None else None

    def increment_news_views(self, news_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(_news.update().where(_news.c.id == news_id).values(views=_news.c.views + 1))

    def create_news(self, article: NewsArticle) -> str:
        news_id = _new_id()
        now = _now_iso()
        with self.engine.begin() as conn:
            conn.execute(
                _news.insert().values(
                    id=news_id,
                    published_at=article.published_at or now,
                    created_at=now,
                    updated_at=now,
                    **_news_values(article),
                )
            )
        return news_id

    def update_news(self, news_id: str, article: NewsArticle) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(
                _news.update().where(_news.c.id == news_id).values(updated_at=_now_iso(), **_news_values(article))
            )
        return result.rowcount > 0

    def delete_news(self, news_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(_news.delete().where(_news.c.id == news_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Contact messages
    # ------------------------------------------------------------------

    def create_contact(self, contact: ContactMessage) -> str:
        contact_id = _new_id()
        now = _now_iso()
        with self.engine.begin() as conn:
            conn.execute(
                _contacts.insert().values(
                    id=contact_id,
                    name=contact.name,
                    email=contact.email,
                    phone=contact.phone,
                    company=contact.company or None,
                    subject=contact.subject,
                    message=contact.message,
                    status="unread",
                    created_at=now,
                    updated_at=now,
                )
            )
        return contact_id

    def list_contacts(
        self, page: int = 1, limit: int = 20, status: Optional[str] = None
    ) -> tuple[list[ContactMessage], int]:
        conditions = []
        if status:
            conditions.append(_contacts.c.status == status)
        with self.engine.connect() as conn:
            total = conn.execute(select(func.count()).select_from(_contacts).where(*conditions)).scalar() or 0
            rows = conn.execute(
                _contacts.select()
                .where(*conditions)
                .order_by(_contacts.c.created_at.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            ).fetchall()
        return [_row_to_contact(r) for r in rows], total

    def get_contact(self, contact_id: str) -> Optional[ContactMessage]:
        with self.engine.connect() as conn:
            row = conn.execute(_contacts.select().where(_contacts.c.id == contact_id)).fetchone()
        return _row_to_contact(row) if row is not None else None

    def update_contact_status(self, contact_id: str, status: str, reply: Optional[str] = None) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(
                _contacts.update()
                .where(_contacts.c.id == contact_id)
                .values(status=status, reply=reply or None, updated_at=_now_iso())
            )
        return result.rowcount > 0

    def delete_contact(self, contact_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(_contacts.delete().where(_contacts.c.id == contact_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Site settings (single row)
    # ------------------------------------------------------------------

    def get_settings(self) -> SiteSettings:
        """Return the settings row, inserting the defaults on first access."""
        with self.engine.begin() as conn:
            row = conn.execute(_settings.select().limit(1)).fetchone()
            if row is None:
                settings_id = _new_id()
                conn.execute(
                    _settings.insert().values(
                        id=settings_id,
                        site_name_zh="公司名称",
                        site_name_en="Company Name",
                        site_description_zh="公司简介",
                        site_description_en="Company Description",
                        banners="[]",
                        homepage_content="{}",
                        updated_at=_now_iso(),
                    )
                )
                row = conn.execute(_settings.select().where(_settings.c.id == settings_id)).fetchone()
        return _row_to_settings(row)

    def update_settings(self, settings: SiteSettings) -> SiteSettings:
        """Overwrite the settings row with the given values and return the stored result."""
        current = self.get_settings()
        with self.engine.begin() as conn:
            conn.execute(
                _settings.update()
                .where(_settings.c.id == current.id)
                .values(
                    site_name_zh=settings.site_name.zh,
                    site_name_en=settings.site_name.en,
                    site_description_zh=settings.site_description.zh,
                    site_description_en=settings.site_description.en,
                    logo=settings.logo,
                    favicon=settings.favicon,
                    address_zh=settings.address.zh,
                    address_en=settings.address.en,
                    phone=settings.phone,
                    email=settings.email,
                    about_zh=settings.about.zh,
                    about_en=settings.about.en,
                    banners=json.dumps(settings.banners, ensure_ascii=False),
                    homepage_content=json.dumps(settings.homepage_content, ensure_ascii=False),
                    updated_at=_now_iso(),
                )
            )
        return self.get_settings()


# ---------------------------------------------------------------------------
# Value builders and row mappers
# ---------------------------------------------------------------------------


def _product_values(product: Product) -> dict:
    return {
        "name_zh": product.name.zh,
        "name_en": product.name.en,
        "description_zh": product.description.zh,
        "description_en": product.description.en,
        "category": product.category,
        "images": json.dumps(product.images, ensure_ascii=False),
        "specifications": json.dumps(product.specifications, ensure_ascii=False),
        "price": product.price,
        "featured": 1 if product.featured else 0,
        "status": product.status,
        "sort_order": product.order,
    }


def _news_values(article: NewsArticle) -> dict:
    return {
        "title_zh": article.title.zh,
        "title_en": article.title.en,
        "content_zh": article.content.zh,
        "content_en": article.content.en,
        "summary_zh": article.summary.zh or None,
        "summary_en": article.summary.en or None,
        "category": article.category,
        "cover_image": article.cover_image or None,
        "author": article.author,
        "status": article.status,
    }


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        name=LocalizedText(zh=row.name_zh, en=row.name_en),
        description=LocalizedText(zh=row.description_zh, en=row.description_en),
        category=row.category,
        images=_loads(row.images, []),
        specifications=_loads(row.specifications, []),
        price=row.price,
        featured=bool(row.featured),
        status=row.status,
        order=row.sort_order,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_news(row) -> NewsArticle:
    return NewsArticle(
        id=row.id,
        title=LocalizedText(zh=row.title_zh, en=row.title_en),
        content=LocalizedText(zh=row.content_zh, en=row.content_en),
        summary=LocalizedText(zh=row.summary_zh or "", en=row.summary_en or ""),
        category=row.category,
        cover_image=row.cover_image,
        author=row.author,
        views=row.views,
        status=row.status,
        published_at=row.published_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_contact(row) -> ContactMessage:
    return ContactMessage(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        company=row.company,
        subject=row.subject,
        message=row.message,
        status=row.status,
        reply=row.reply,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_settings(row) -> SiteSettings:
    return SiteSettings(
        id=row.id,
        site_name=LocalizedText(zh=row.site_name_zh, en=row.site_name_en),
        site_description=LocalizedText(zh=row.site_description_zh, en=row.site_description_en),
        logo=row.logo,
        favicon=row.favicon,
        address=LocalizedText(zh=row.address_zh or "", en=row.address_en or ""),
        phone=row.phone,
        email=row.email,
        about=LocalizedText(zh=row.about_zh or "", en=row.about_en or ""),
        banners=_loads(row.banners, []),
        homepage_content=_loads(row.homepage_content, {}),
        updated_at=row.updated_at,
    )
