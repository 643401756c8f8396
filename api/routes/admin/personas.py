"""
api/routes/admin/personas.py -- Persona CRUD routes.

Routes (mounted under /api/admin):
  GET    /personas                -- list personas (?activeOnly=true for authors only)
  POST   /personas                -- create persona
  GET    /persona/{persona_id}    -- persona detail
  PUT    /persona/{persona_id}    -- update the fields present in the payload
  DELETE /persona/{persona_id}    -- soft delete: is_active -> false

Deletion never removes the row. Articles keep pointing at the persona and the
admin list shows it greyed out; PUT with isActive=true brings it back.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.models import ErrorDetail, PersonaIn, PersonaOut
from auth.dependencies import get_current_admin
from auth.models import Admin
from content.models import Persona
from content.store import ContentStore

logger = logging.getLogger("intelligencer.api.personas")

router = APIRouter(dependencies=[Depends(get_current_admin)])


def _not_found(persona_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=ErrorDetail(
            code="persona_not_found",
            message=f"Persona {persona_id} not found.",
        ).model_dump(),
    )


@router.get("/personas", response_model=list[PersonaOut])
def list_personas(
    request: Request,
    active_only: bool = Query(default=False, alias="activeOnly"),
) -> list[PersonaOut]:
    """Return personas ordered by display order, each with its article count."""
    store: ContentStore = request.app.state.content
    return [PersonaOut.from_domain(p) for p in store.list_personas(active_only=active_only)]


@router.post("/personas", response_model=PersonaOut, status_code=201)
def create_persona(
    request: Request,
    body: PersonaIn,
    admin: Admin = Depends(get_current_admin),
) -> PersonaOut:
    store: ContentStore = request.app.state.content
    persona = Persona(
        name=body.name,
        bio=body.bio,
        role=body.role.value,
        profile_image_url=body.profile_image_url,
        more_info_text=body.more_info_text,
        external_links=body.external_links,
        display_order=body.display_order,
        is_active=True if body.is_active is None else body.is_active,
    )
    persona_id = store.create_persona(persona)
    logger.info("Persona %d created by %s", persona_id, admin.email)
    return PersonaOut.from_domain(store.get_persona(persona_id))


@router.get("/persona/{persona_id}", response_model=PersonaOut)
def get_persona(request: Request, persona_id: int) -> PersonaOut:
    store: ContentStore = request.app.state.content
    persona = store.get_persona(persona_id)
    if persona is None:
        raise _not_found(persona_id)
    return PersonaOut.from_domain(persona)


@router.put("/persona/{persona_id}", response_model=PersonaOut)
def update_persona(
    request: Request,
    persona_id: int,
    body: PersonaIn,
    admin: Admin = Depends(get_current_admin),
) -> PersonaOut:
    """Update the fields present in the payload; omitted fields keep their values."""
    store: ContentStore = request.app.state.content
    if not store.update_persona(persona_id, **body.changed_fields()):
        raise _not_found(persona_id)
    logger.info("Persona %d updated by %s", persona_id, admin.email)
    return PersonaOut.from_domain(store.get_persona(persona_id))


@router.delete("/persona/{persona_id}", response_model=PersonaOut)
def deactivate_persona(
    request: Request,
    persona_id: int,
    admin: Admin = Depends(get_current_admin),
) -> PersonaOut:
    """Deactivate a persona. Returns the persona with isActive=false."""
    store: ContentStore = request.app.state.content
    if not store.deactivate_persona(persona_id):
        raise _not_found(persona_id)
    logger.info("Persona %d deactivated by %s", persona_id, admin.email)
    return PersonaOut.from_domain(store.get_persona(persona_id))
