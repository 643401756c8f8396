"""
web/panels.py -- View state for the three admin dashboard tabs.

A panel is rebuilt from scratch on every request: the query string says which
tab is open and whether a record is being created or edited, the store supplies
the lists, and a failed form POST passes back what was submitted plus an error.

Form dicts hold strings and booleans exactly as the templates render them,
so a re-rendered form shows the user's input unchanged.
"""

from dataclasses import dataclass, field
from typing import Optional

from content.models import Article, Persona, SiteSettings
from content.store import ContentStore

TABS = ("articles", "personas", "settings")


@dataclass
class PanelState:
    items: list = field(default_factory=list)
    creating: bool = False
    editing_id: Optional[int] = None
    form: dict = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def form_open(self) -> bool:
        return self.creating or self.editing_id is not None


# ---------------------------------------------------------------------------
# Form defaults
# ---------------------------------------------------------------------------


def empty_article_form(personas: list[Persona]) -> dict:
    return {
        "title": "",
        "body": "",
        "excerpt": "",
        "featured_image_url": "",
        "persona_id": str(personas[0].id) if personas else "",
        "category": "",
        "tags": "",
        "style": "analysis",
        "is_public": True,
    }


def article_form(article: Article) -> dict:
    return {
        "title": article.title,
        "body": article.body,
        "excerpt": article.excerpt,
        "featured_image_url": article.featured_image_url or "",
        "persona_id": str(article.persona_id),
        "category": article.category or "",
        "tags": ", ".join(article.tags),
        "style": article.style,
        "is_public": article.is_public,
    }


def empty_persona_form() -> dict:
    return {
        "name": "",
        "bio": "",
        "role": "reporter",
        "profile_image_url": "",
        "more_info_text": "",
        "external_links": "",
        "display_order": "0",
        "is_active": True,
    }


def persona_form(persona: Persona) -> dict:
    return {
        "name": persona.name,
        "bio": persona.bio,
        "role": persona.role,
        "profile_image_url": persona.profile_image_url or "",
        "more_info_text": persona.more_info_text or "",
        "external_links": "\n".join(persona.external_links),
        "display_order": str(persona.display_order),
        "is_active": persona.is_active,
    }


def settings_form(settings: SiteSettings) -> dict:
    return {
        "site_name": settings.site_name,
        "tagline": settings.tagline or "",
        "is_public": settings.is_public,
    }


# ---------------------------------------------------------------------------
# Panel builders
# ---------------------------------------------------------------------------


def articles_panel(
    store: ContentStore,
    creating: bool = False,
    editing_id: Optional[int] = None,
    form: Optional[dict] = None,
    error: Optional[str] = None,
) -> PanelState:
    """Build the Articles tab.

    An edit id that no longer exists closes the form instead of failing, since
    the id comes from a URL that may be stale.
    """
    panel = PanelState(items=store.list_articles(), error=error)
    if editing_id is not None:
        article = store.get_article(editing_id)
        if article is not None:
            panel.editing_id = editing_id
            panel.form = form if form is not None else article_form(article)
    elif creating:
        panel.creating = True
        panel.form = form if form is not None else empty_article_form(store.list_personas(active_only=True))
    return panel


def personas_panel(
    store: ContentStore,
    creating: bool = False,
    editing_id: Optional[int] = None,
    form: Optional[dict] = None,
    error: Optional[str] = None,
) -> PanelState:
    panel = PanelState(items=store.list_personas(), error=error)
    if editing_id is not None:
        persona = store.get_persona(editing_id)
        if persona is not None:
            panel.editing_id = editing_id
            panel.form = form if form is not None else persona_form(persona)
    elif creating:
        panel.creating = True
        panel.form = form if form is not None else empty_persona_form()
    return panel


def settings_panel(store: ContentStore, form: Optional[dict] = None, error: Optional[str] = None) -> PanelState:
    # The settings tab is always an open form over the singleton row.
    current = store.get_site_settings()
    return PanelState(
        items=[current],
        editing_id=current.id,
        form=form if form is not None else settings_form(current),
        error=error,
    )
