"""
api/routes/v1/settings.py -- Site-wide settings.

Auth policy:
  GET /api/v1/settings   public
  PUT /api/v1/settings   {admin}
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import SettingsIn, SettingsOut
from auth.dependencies import require_roles
from auth.models import ROLE_ADMIN, Principal
from content.models import LocalizedText, SiteSettings
from content.store import ContentStore

router = APIRouter()

can_update = require_roles(ROLE_ADMIN)


@router.get("/settings", response_model=SettingsOut)
def get_settings(request: Request) -> SettingsOut:
    store: ContentStore = request.app.state.content_store
    return settings_to_out(store.get_settings())


@router.put("/settings", response_model=SettingsOut)
def update_settings(
    request: Request,
    body: SettingsIn,
    principal: Principal = Depends(can_update),
) -> SettingsOut:
    store: ContentStore = request.app.state.content_store
    updated = store.update_settings(
        SiteSettings(
            id="",
            site_name=LocalizedText(zh=body.site_name.zh, en=body.site_name.en),
            site_description=LocalizedText(zh=body.site_description.zh, en=body.site_description.en),
            logo=body.logo,
            favicon=body.favicon,
            address=LocalizedText(zh=body.address.zh, en=body.address.en),
            phone=body.phone,
            email=body.email,
            about=LocalizedText(zh=body.about.zh, en=body.about.en),
            banners=list(body.banners),
            homepage_content=dict(body.homepage_content),
        )
    )
    return settings_to_out(updated)


def _pair(text: LocalizedText) -> dict:
    return {"zh": text.zh, "en": text.en}


def settings_to_out(settings: SiteSettings) -> SettingsOut:
    return SettingsOut(
        id=settings.id,
        site_name=_pair(settings.site_name),
        site_description=_pair(settings.site_description),
        logo=settings.logo,
        favicon=settings.favicon,
        address=_pair(settings.address),
        phone=settings.phone,
        email=settings.email,
        about=_pair(settings.about),
        banners=settings.banners,
        homepage_content=settings.homepage_content,
        updated_at=settings.updated_at,
    )
