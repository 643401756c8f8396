"""
api/routes/admin/settings.py -- Site settings singleton.

  GET /settings -- current values
  PUT /settings -- update siteName, plus tagline and isPublic when sent

There is no POST or DELETE: the row is seeded by ContentStore on first start.
"""

import logging

from fastapi import APIRouter, Depends, Request

from api.models import SettingsIn, SettingsOut
from auth.dependencies import get_current_admin
from auth.models import Admin
from content.store import ContentStore

logger = logging.getLogger("intelligencer.api.settings")

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.get("/settings", response_model=SettingsOut)
def get_settings(request: Request) -> SettingsOut:
    store: ContentStore = request.app.state.content
    return SettingsOut.from_domain(store.get_site_settings())


@router.put("/settings", response_model=SettingsOut)
def update_settings(
    request: Request,
    body: SettingsIn,
    admin: Admin = Depends(get_current_admin),
) -> SettingsOut:
    store: ContentStore = request.app.state.content
    current = store.get_site_settings()
    sent = body.model_fields_set
    updated = store.update_site_settings(
        body.site_name,
        body.tagline if "tagline" in sent else current.tagline,
        body.is_public if "is_public" in sent else current.is_public,
    )
    logger.info("Site settings updated by %s (public=%s)", admin.email, updated.is_public)
    return SettingsOut.from_domain(updated)
