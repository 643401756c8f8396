"""
web/routes.py -- Jinja2 template routes for the admin panel and the public site.

These routes serve server-rendered HTML. They share app.state with the API
routes (same AdminStore and ContentStore) but return HTML instead of JSON, and
every admin form posts back here rather than to /api.

Dashboard state lives in the query string so a reload shows the same panel:
  /admin/dashboard?tab=articles&create=1
  /admin/dashboard?tab=personas&edit=3
Successful POSTs redirect (303) back to the tab, which refetches the lists and
clears the form. Failed POSTs re-render the tab with the submitted values and
an error message.

Routes:
  GET  /                                   -- public home: published articles
  GET  /articles/{article_id}              -- public article page
  GET  /admin                              -- redirect to the dashboard
  GET  /admin/login                        -- sign-in form
  POST /admin/login                        -- handle email/password sign-in
  POST /admin/logout                       -- clear cookie, redirect /admin/login
  GET  /admin/dashboard                    -- tabbed admin panel (auth required)
  POST /admin/articles                     -- create article
  POST /admin/articles/{article_id}        -- update article
  POST /admin/articles/{article_id}/delete -- permanent delete
  POST /admin/personas                     -- create persona
  POST /admin/personas/{persona_id}        -- update persona
  POST /admin/personas/{persona_id}/deactivate -- soft delete
  POST /admin/settings                     -- update site settings
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import try_get_current_admin
from auth.models import Admin
from auth.store import AdminStore
from auth.tokens import COOKIE_NAME, authenticate_admin, create_access_token, set_auth_cookie
from content.models import ARTICLE_STYLES, PERSONA_ROLES, Article, Persona
from content.store import ContentStore, InvalidPersonaError
from web.panels import TABS, PanelState, articles_panel, personas_panel, settings_panel

logger = logging.getLogger("intelligencer.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
# layout.html calls try_get_current_admin(request) to decide whether to show
# the admin nav, so handlers need not pass the admin into every context.
templates.env.globals["try_get_current_admin"] = try_get_current_admin
templates.env.globals["current_year"] = lambda: datetime.now(timezone.utc).year
router = APIRouter()

_DASHBOARD = "/admin/dashboard"

# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------

# Whitelist mapping for ?error= on /admin/login. The raw query param is never
# passed to templates, only the message from this dict.
_ERROR_MESSAGES: dict[str, str] = {
    "bad_credentials": "Invalid email or password.",
}

# Same treatment for the ?notice= flash shown after a successful POST.
_NOTICES: dict[str, str] = {
    "article_created": "Article created.",
    "article_updated": "Article saved.",
    "article_deleted": "Article deleted.",
    "persona_created": "Persona created.",
    "persona_updated": "Persona saved.",
    "persona_deactivated": "Persona deactivated.",
    "settings_saved": "Settings saved.",
}


def _safe_next(next_url: Optional[str]) -> str:
    """Validate a post-login redirect target. Only accept relative paths.

    /admin/login?next=https://attacker.com and /admin/login?next=//attacker.com
    would both send the browser off-site after sign-in. Only paths that start
    with a single "/" are allowed; anything else falls back to the dashboard.
    """
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return _DASHBOARD


def _require_auth(request: Request) -> Optional[RedirectResponse]:
    """Return a redirect to /admin/login if not authenticated, None if OK.

    On success the resolved admin is kept on request.state for _admin().

    Call at the top of protected route handlers:
        if redirect := _require_auth(request):
            return redirect
    """
    admin = try_get_current_admin(request)
    if admin is None:
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return RedirectResponse(f"/admin/login?next={quote(target, safe='/')}", status_code=302)
    request.state.admin = admin
    return None


def _admin(request: Request) -> Admin:
    # Set by _require_auth.
    return request.state.admin


def _checked(value: Optional[str]) -> bool:
    """HTML checkboxes submit "on" when ticked and nothing at all otherwise."""
    return value is not None and value.lower() in ("on", "true", "1", "yes")


def _split(raw: str) -> list[str]:
    """Split a textarea of links or tags on newlines and commas."""
    return [part.strip() for part in raw.replace("\n", ",").split(",") if part.strip()]


def _back_to(tab: str, notice: str) -> RedirectResponse:
    return RedirectResponse(f"{_DASHBOARD}?tab={tab}&notice={notice}", status_code=303)


def _not_found(what: str) -> HTMLResponse:
    return HTMLResponse(f"<h1>{what} not found</h1>", status_code=404)


# ---------------------------------------------------------------------------
# Dashboard rendering
# ---------------------------------------------------------------------------


def _render_dashboard(
    request: Request,
    tab: str,
    panel: Optional[PanelState] = None,
    notice: Optional[str] = None,
) -> HTMLResponse:
    """Render the dashboard with one active tab.

    panel is passed in when a POST failed validation; otherwise the active tab
    is rebuilt from the query string.
    """
    store: ContentStore = request.app.state.content
    if tab not in TABS:
        tab = "articles"

    if panel is None:
        creating = request.query_params.get("create") == "1"
        edit_raw = request.query_params.get("edit", "")
        editing_id = int(edit_raw) if edit_raw.isdigit() else None
        if tab == "articles":
            panel = articles_panel(store, creating=creating, editing_id=editing_id)
        elif tab == "personas":
            panel = personas_panel(store, creating=creating, editing_id=editing_id)
        else:
            panel = settings_panel(store)

    return templates.TemplateResponse(
        "admin/dashboard.html",
        {
            "request": request,
            "tab": tab,
            "panel": panel,
            "active_personas": store.list_personas(active_only=True),
            "site": store.get_site_settings(),
            "notice": notice,
            "roles": PERSONA_ROLES,
            "styles": ARTICLE_STYLES,
        },
    )


# ---------------------------------------------------------------------------
# Public site
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    """Public front page: public articles by active personas, newest first."""
    store: ContentStore = request.app.state.content
    site = store.get_site_settings()
    articles = store.list_articles(public_only=True) if site.is_public else []
    return templates.TemplateResponse(
        "home.html",
        {"request": request, "site": site, "articles": articles},
    )


@router.get("/articles/{article_id}", response_class=HTMLResponse)
def article_page(request: Request, article_id: int) -> HTMLResponse:
    store: ContentStore = request.app.state.content
    site = store.get_site_settings()
    article = store.get_article(article_id) if site.is_public else None
    if article is None or not article.is_public:
        return _not_found("Article")
    author = store.get_persona(article.persona_id)
    if author is None or not author.is_active:
        return _not_found("Article")
    return templates.TemplateResponse(
        "article.html",
        {
            "request": request,
            "site": site,
            "article": article,
            "author": author,
        },
    )


# ---------------------------------------------------------------------------
# Auth routes -- login, logout
# ---------------------------------------------------------------------------


@router.get("/admin")
def admin_root() -> RedirectResponse:
    return RedirectResponse(_DASHBOARD, status_code=302)


@router.get("/admin/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    """Render the sign-in page."""
    if try_get_current_admin(request) is not None:
        return RedirectResponse(_DASHBOARD, status_code=302)

    error_msg = _ERROR_MESSAGES.get(request.query_params.get("error", ""), None)
    store: ContentStore = request.app.state.content
    return templates.TemplateResponse(
        "admin/login.html",
        {
            "request": request,
            "error_msg": error_msg,
            "next": _safe_next(request.query_params.get("next")),
            "site": store.get_site_settings(),
        },
    )


@router.post("/admin/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
) -> RedirectResponse:
    """Handle the sign-in form. Both failure causes share one error code."""
    admin_store: AdminStore = request.app.state.admin_store
    next_url = _safe_next(request.query_params.get("next"))
    admin = authenticate_admin(admin_store, email, password)
    if admin is None:
        target = "/admin/login?error=bad_credentials"
        if next_url != _DASHBOARD:
            target += f"&next={quote(next_url, safe='/')}"
        return RedirectResponse(target, status_code=302)

    token = create_access_token(admin.id, admin.email, admin.name)
    resp = RedirectResponse(next_url, status_code=302)
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/admin/logout")
def logout(request: Request) -> RedirectResponse:
    """Clear the JWT cookie and redirect to the sign-in page."""
    resp = RedirectResponse("/admin/login", status_code=302)
    resp.delete_cookie(COOKIE_NAME)
    return resp


# ---------------------------------------------------------------------------
# GET /admin/dashboard
# ---------------------------------------------------------------------------


@router.get("/admin/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, tab: str = "articles") -> HTMLResponse:
    if redirect := _require_auth(request):
        return redirect
    notice = _NOTICES.get(request.query_params.get("notice", ""), None)
    return _render_dashboard(request, tab, notice=notice)


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------


def _article_from_form(form: dict) -> tuple[Optional[Article], Optional[str]]:
    """Validate a submitted article form. Returns (article, None) or (None, error)."""
    title = form["title"].strip()
    body = form["body"].strip()
    if not title:
        return None, "Title is required."
    if len(title) > 500:
        return None, "Title must be 500 characters or fewer."
    if not body:
        return None, "Body is required."
    if not form["persona_id"].isdigit():
        return None, "Choose an author."
    style = form["style"] if form["style"] in ARTICLE_STYLES else "analysis"
    return (
        Article(
            title=title,
            body=body,
            excerpt=form["excerpt"].strip(),
            featured_image_url=form["featured_image_url"].strip() or None,
            persona_id=int(form["persona_id"]),
            category=form["category"].strip() or None,
            tags=_split(form["tags"]),
            style=style,
            is_public=form["is_public"],
        ),
        None,
    )


def _article_form_data(
    title: str,
    body: str,
    excerpt: str,
    featured_image_url: str,
    persona_id: str,
    category: str,
    tags: str,
    style: str,
    is_public: Optional[str],
) -> dict:
    return {
        "title": title,
        "body": body,
        "excerpt": excerpt,
        "featured_image_url": featured_image_url,
        "persona_id": persona_id,
        "category": category,
        "tags": tags,
        "style": style,
        "is_public": _checked(is_public),
    }


@router.post("/admin/articles", response_class=HTMLResponse)
def article_create(
    request: Request,
    title: str = Form(default=""),
    body: str = Form(default=""),
    excerpt: str = Form(default=""),
    featured_image_url: str = Form(default=""),
    persona_id: str = Form(default=""),
    category: str = Form(default=""),
    tags: str = Form(default=""),
    style: str = Form(default="analysis"),
    is_public: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Handle the New Article form. Redirects to the Articles tab on success."""
    if redirect := _require_auth(request):
        return redirect
    store: ContentStore = request.app.state.content
    form_data = _article_form_data(
        title, body, excerpt, featured_image_url, persona_id, category, tags, style, is_public
    )

    article, error = _article_from_form(form_data)
    if article is not None:
        try:
            article_id = store.create_article(article)
        except InvalidPersonaError:
            error = "The selected author no longer exists or is inactive."
        else:
            logger.info("Article %d created by %s", article_id, _admin(request).email)
            return _back_to("articles", "article_created")

    panel = articles_panel(store, creating=True, form=form_data, error=error)
    return _render_dashboard(request, "articles", panel)


@router.post("/admin/articles/{article_id}", response_class=HTMLResponse)
def article_update(
    request: Request,
    article_id: int,
    title: str = Form(default=""),
    body: str = Form(default=""),
    excerpt: str = Form(default=""),
    featured_image_url: str = Form(default=""),
    persona_id: str = Form(default=""),
    category: str = Form(default=""),
    tags: str = Form(default=""),
    style: str = Form(default="analysis"),
    is_public: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Handle the Edit Article form. Every field is replaced with the submitted value."""
    if redirect := _require_auth(request):
        return redirect
    store: ContentStore = request.app.state.content
    if store.get_article(article_id) is None:
        return _not_found("Article")
    form_data = _article_form_data(
        title, body, excerpt, featured_image_url, persona_id, category, tags, style, is_public
    )

    article, error = _article_from_form(form_data)
    if article is not None:
        try:
            store.update_article(article_id, article)
        except InvalidPersonaError:
            error = "The selected author no longer exists or is inactive."
        else:
            logger.info("Article %d updated by %s", article_id, _admin(request).email)
            return _back_to("articles", "article_updated")

    panel = articles_panel(store, editing_id=article_id, form=form_data, error=error)
    return _render_dashboard(request, "articles", panel)


@router.post("/admin/articles/{article_id}/delete")
def article_delete(request: Request, article_id: int) -> RedirectResponse:
    """Delete an article permanently. The template asks for confirmation first."""
    if redirect := _require_auth(request):
        return redirect
    store: ContentStore = request.app.state.content
    if not store.delete_article(article_id):
        return _not_found("Article")
    logger.info("Article %d deleted by %s", article_id, _admin(request).email)
    return _back_to("articles", "article_deleted")


# ---------------------------------------------------------------------------
# Personas
# ---------------------------------------------------------------------------


def _persona_from_form(form: dict) -> tuple[Optional[Persona], Optional[str]]:
    """Validate a submitted persona form. Returns (persona, None) or (None, error)."""
    name = form["name"].strip()
    bio = form["bio"].strip()
    if not name:
        return None, "Name is required."
    if len(name) > 255:
        return None, "Name must be 255 characters or fewer."
    if not bio:
        return None, "Bio is required."
    try:
        display_order = int(form["display_order"].strip() or "0")
    except ValueError:
        return None, "Display order must be a whole number."
    role = form["role"] if form["role"] in PERSONA_ROLES else "reporter"
    return (
        Persona(
            name=name,
            bio=bio,
            role=role,
            profile_image_url=form["profile_image_url"].strip() or None,
            more_info_text=form["more_info_text"].strip() or None,
            external_links=_split(form["external_links"]),
            display_order=display_order,
            is_active=form["is_active"],
        ),
        None,
    )


@router.post("/admin/personas", response_class=HTMLResponse)
def persona_create(
    request: Request,
    name: str = Form(default=""),
    bio: str = Form(default=""),
    role: str = Form(default="reporter"),
    profile_image_url: str = Form(default=""),
    more_info_text: str = Form(default=""),
    external_links: str = Form(default=""),
    display_order: str = Form(default="0"),
) -> HTMLResponse:
    """Handle the New Persona form. New personas always start active."""
    if redirect := _require_auth(request):
        return redirect
    store: ContentStore = request.app.state.content
    form_data = {
        "name": name,
        "bio": bio,
        "role": role,
        "profile_image_url": profile_image_url,
        "more_info_text": more_info_text,
        "external_links": external_links,
        "display_order": display_order,
        "is_active": True,
    }

    persona, error = _persona_from_form(form_data)
    if persona is None:
        panel = personas_panel(store, creating=True, form=form_data, error=error)
        return _render_dashboard(request, "personas", panel)

    persona_id = store.create_persona(persona)
    logger.info("Persona %d created by %s", persona_id, _admin(request).email)
    return _back_to("personas", "persona_created")


@router.post("/admin/personas/{persona_id}", response_class=HTMLResponse)
def persona_update(
    request: Request,
    persona_id: int,
    name: str = Form(default=""),
    bio: str = Form(default=""),
    role: str = Form(default="reporter"),
    profile_image_url: str = Form(default=""),
    more_info_text: str = Form(default=""),
    external_links: str = Form(default=""),
    display_order: str = Form(default="0"),
    is_active: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Handle the Edit Persona form, including the Active checkbox."""
    if redirect := _require_auth(request):
        return redirect
    store: ContentStore = request.app.state.content
    if store.get_persona(persona_id) is None:
        return _not_found("Persona")
    form_data = {
        "name": name,
        "bio": bio,
        "role": role,
        "profile_image_url": profile_image_url,
        "more_info_text": more_info_text,
        "external_links": external_links,
        "display_order": display_order,
        "is_active": _checked(is_active),
    }

    persona, error = _persona_from_form(form_data)
    if persona is None:
        panel = personas_panel(store, editing_id=persona_id, form=form_data, error=error)
        return _render_dashboard(request, "personas", panel)

    store.update_persona(
        persona_id,
        name=persona.name,
        bio=persona.bio,
        role=persona.role,
        profile_image_url=persona.profile_image_url,
        more_info_text=persona.more_info_text,
        external_links=persona.external_links,
        display_order=persona.display_order,
        is_active=persona.is_active,
    )
    logger.info("Persona %d updated by %s", persona_id, _admin(request).email)
    return _back_to("personas", "persona_updated")


@router.post("/admin/personas/{persona_id}/deactivate")
def persona_deactivate(request: Request, persona_id: int) -> RedirectResponse:
    """Soft-delete a persona. Its articles stay in place."""
    if redirect := _require_auth(request):
        return redirect
    store: ContentStore = request.app.state.content
    if not store.deactivate_persona(persona_id):
        return _not_found("Persona")
    logger.info("Persona %d deactivated by %s", persona_id, _admin(request).email)
    return _back_to("personas", "persona_deactivated")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@router.post("/admin/settings", response_class=HTMLResponse)
def settings_update(
    request: Request,
    site_name: str = Form(default=""),
    tagline: str = Form(default=""),
    is_public: Optional[str] = Form(default=None),
) -> HTMLResponse:
    if redirect := _require_auth(request):
        return redirect
    store: ContentStore = request.app.state.content
    form_data = {"site_name": site_name, "tagline": tagline, "is_public": _checked(is_public)}

    name_clean = site_name.strip()
    error = None
    if not name_clean:
        error = "Site name is required."
    elif len(name_clean) > 255:
        error = "Site name must be 255 characters or fewer."
    if error:
        return _render_dashboard(request, "settings", settings_panel(store, form=form_data, error=error))

    updated = store.update_site_settings(name_clean, tagline.strip() or None, form_data["is_public"])
    logger.info("Site settings updated by %s (public=%s)", _admin(request).email, updated.is_public)
    return _back_to("settings", "settings_saved")
