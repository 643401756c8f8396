"""
content/store.py -- SQLAlchemy-backed persistence for personas, articles, and site settings.

Uses SQLAlchemy Core (not ORM) so the dataclasses in content/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. ContentStore is the repository; the
_row_to_* functions translate raw rows into domain dataclasses. Route handlers
never touch SQL directly.

Rules enforced here rather than in the routes:
  - A new article must reference an existing, active persona. On update the
    persona must exist, and must be active unless it is already the author.
  - Persona deletion is soft (is_active = 0). Article deletion is hard.
  - An empty excerpt is generated from the body.
  - published_at is stamped the first time an article is saved as public.
  - site_settings holds exactly one row (id = 1), seeded on first start.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ContentStore()                               # SQLite default
    store = ContentStore("postgresql://user:pw@host/db") # PostgreSQL
    persona_id = store.create_persona(persona)
    article_id = store.create_article(article)
    store.deactivate_persona(persona_id)
    store.close()
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.engine import Engine

from content.models import Article, Persona, SiteSettings

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'intelligencer_content.db'}"

_EXCERPT_CHARS = 200

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_personas = Table(
    "personas",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("bio", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default="reporter"),
    Column("profile_image_url", Text),
    Column("more_info_text", Text),
    Column("external_links", Text),  # JSON array serialized as text
    Column("display_order", Integer, nullable=False, server_default="0"),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
)

_articles = Table(
    "articles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(500), nullable=False),
    Column("body", Text, nullable=False),
    Column("excerpt", Text, nullable=False),
    Column("featured_image_url", Text),
    Column("persona_id", Integer, nullable=False),
    Column("category", String(100)),
    Column("tags", Text),  # JSON array, like external_links
    Column("style", String(30), nullable=False, server_default="analysis"),
    Column("is_public", Integer, nullable=False, server_default="1"),
    Column("published_at", String(32)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_site_settings = Table(
    "site_settings",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("site_name", String(255), nullable=False),
    Column("tagline", Text),
    Column("is_public", Integer, nullable=False, server_default="1"),
    CheckConstraint("id = 1", name="ck_site_settings_single_row"),
)

_PERSONA_FIELDS: set = {
    "name",
    "bio",
    "role",
    "profile_image_url",
    "more_info_text",
    "external_links",
    "display_order",
    "is_active",
}


class InvalidPersonaError(ValueError):
    """Raised when an article would reference a missing or inactive persona."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def make_excerpt(body: str, limit: int = _EXCERPT_CHARS) -> str:
    """Return the first `limit` characters of body, cut at a word boundary.

    Whitespace runs (including paragraph breaks) collapse to single spaces.
    An ellipsis is appended only when text was actually dropped.
    """
    text = " ".join(body.split())
    if len(text) <= limit:
        return text
    cut = text[:limit]
    if " " in cut:
        cut = cut[: cut.rfind(" ")]
    return cut.rstrip(" .,;:") + "…"


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ContentStore:
    def __init__(
        self,
        db_url: str = _DEFAULT_DB_URL,
        default_site_name: str = "The Artificial Intelligencer",
        default_tagline: Optional[str] = None,
    ) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers in a thread pool; the pool may hand the
            # same SQLite connection to different threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)
        self._ensure_site_settings(default_site_name, default_tagline)

    def _ensure_site_settings(self, site_name: str, tagline: Optional[str]) -> None:
        """Seed the settings row if it does not exist yet. Idempotent."""
        with self.engine.connect() as conn:
            exists = conn.execute(select(_site_settings.c.id).where(_site_settings.c.id == 1)).fetchone()
            if exists is None:
                conn.execute(_site_settings.insert().values(id=1, site_name=site_name, tagline=tagline, is_public=1))
                conn.commit()

    # ------------------------------------------------------------------
    # Personas
    # ------------------------------------------------------------------

    def _persona_select(self):
        # LEFT JOIN so personas with zero articles still appear with a count of 0.
        return (
            select(_personas, func.count(_articles.c.id).label("article_count"))
            .select_from(_personas.outerjoin(_articles, _articles.c.persona_id == _personas.c.id))
            .group_by(_personas.c.id)
        )

    def list_personas(self, active_only: bool = False) -> list[Persona]:
        """Return personas ordered by display_order, then name, with article counts."""
        stmt = self._persona_select().order_by(_personas.c.display_order, _personas.c.name)
        if active_only:
            stmt = stmt.where(_personas.c.is_active == 1)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_persona(r) for r in rows]

    def get_persona(self, persona_id: int) -> Optional[Persona]:
        """Fetch a single persona by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(self._persona_select().where(_personas.c.id == persona_id)).fetchone()
        return _row_to_persona(row) if row is not None else None

    def create_persona(self, persona: Persona) -> int:
        """Insert a new persona and return its assigned database ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _personas.insert().values(
                    name=persona.name,
                    bio=persona.bio,
                    role=persona.role,
                    profile_image_url=persona.profile_image_url,
                    more_info_text=persona.more_info_text,
                    external_links=json.dumps(persona.external_links),
                    display_order=persona.display_order,
                    is_active=1 if persona.is_active else 0,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_persona(self, persona_id: int, **fields) -> bool:
        """Update mutable fields on an existing persona.

        Accepted fields: name, bio, role, profile_image_url, more_info_text,
        external_links (list[str]), display_order, is_active (bool). Unknown
        keys raise ValueError.

        Returns True if a row was updated, False if persona_id was not found.
        """
        unknown = set(fields) - _PERSONA_FIELDS
        if unknown:
            raise ValueError(f"Unknown persona fields: {unknown!r}")
        if not fields:
            return self.get_persona(persona_id) is not None
        if "external_links" in fields:
            fields["external_links"] = json.dumps(fields["external_links"] or [])
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        with self.engine.connect() as conn:
            result = conn.execute(_personas.update().where(_personas.c.id == persona_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def deactivate_persona(self, persona_id: int) -> bool:
        """Soft-delete: flip is_active to 0. Articles keep their author reference.

        Idempotent -- deactivating an inactive persona still returns True.
        Returns False only if persona_id does not exist.
        """
        return self.update_persona(persona_id, is_active=False)

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    def _article_select(self):
        return select(
            _articles,
            _personas.c.name.label("persona_name"),
            _personas.c.role.label("persona_role"),
        ).select_from(_articles.outerjoin(_personas, _articles.c.persona_id == _personas.c.id))

    def list_articles(self, public_only: bool = False) -> list[Article]:
        """Return articles newest first.

        public_only restricts to public articles whose persona is still active,
        which is what the public site shows.
        """
        stmt = self._article_select().order_by(_articles.c.created_at.desc(), _articles.c.id.desc())
        if public_only:
            stmt = stmt.where((_articles.c.is_public == 1) & (_personas.c.is_active == 1))
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_article(r) for r in rows]

    def get_article(self, article_id: int) -> Optional[Article]:
        """Fetch a single article by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(self._article_select().where(_articles.c.id == article_id)).fetchone()
        return _row_to_article(row) if row is not None else None

    def _check_author(self, persona_id: int, current_persona_id: Optional[int] = None) -> None:
        persona = self.get_persona(persona_id)
        if persona is None:
            raise InvalidPersonaError(f"Persona {persona_id} does not exist.")
        if not persona.is_active and persona_id != current_persona_id:
            raise InvalidPersonaError(f"Persona {persona_id} is inactive.")

    def create_article(self, article: Article) -> int:
        """Insert a new article and return its ID.

        Raises InvalidPersonaError if persona_id is unknown or inactive.
        """
        self._check_author(article.persona_id)
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _articles.insert().values(
                    title=article.title,
                    body=article.body,
                    excerpt=article.excerpt.strip() or make_excerpt(article.body),
                    featured_image_url=article.featured_image_url,
                    persona_id=article.persona_id,
                    category=article.category,
                    tags=json.dumps(article.tags),
                    style=article.style,
                    is_public=1 if article.is_public else 0,
                    published_at=article.published_at or (now if article.is_public else None),
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_article(self, article_id: int, article: Article) -> bool:
        """Replace every editable field of an existing article.

        Returns False if article_id was not found. Raises InvalidPersonaError
        if the new author is unknown, or inactive and not the current author.
        """
        existing = self.get_article(article_id)
        if existing is None:
            return False
        self._check_author(article.persona_id, current_persona_id=existing.persona_id)
        now = _now_iso()
        published_at = existing.published_at
        if article.is_public and published_at is None:
            published_at = now
        with self.engine.connect() as conn:
            result = conn.execute(
                _articles.update()
                .where(_articles.c.id == article_id)
                .values(
                    title=article.title,
                    body=article.body,
                    excerpt=article.excerpt.strip() or make_excerpt(article.body),
                    featured_image_url=article.featured_image_url,
                    persona_id=article.persona_id,
                    category=article.category,
                    tags=json.dumps(article.tags),
                    style=article.style,
                    is_public=1 if article.is_public else 0,
                    published_at=published_at,
                    updated_at=now,
                )
            )
            conn.commit()
        return result.rowcount > 0

    def delete_article(self, article_id: int) -> bool:
        """Permanently delete an article. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_articles.delete().where(_articles.c.id == article_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Site settings
    # ------------------------------------------------------------------

    def get_site_settings(self) -> SiteSettings:
        with self.engine.connect() as conn:
            row = conn.execute(_site_settings.select().where(_site_settings.c.id == 1)).fetchone()
        return SiteSettings(
            id=row.id,
            site_name=row.site_name,
            tagline=row.tagline,
            is_public=bool(row.is_public),
        )

    def update_site_settings(self, site_name: str, tagline: Optional[str], is_public: bool) -> SiteSettings:
        """Overwrite the settings row in place and return the stored values."""
        with self.engine.connect() as conn:
            conn.execute(
                _site_settings.update()
                .where(_site_settings.c.id == 1)
                .values(site_name=site_name, tagline=tagline, is_public=1 if is_public else 0)
            )
            conn.commit()
        return self.get_site_settings()

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(select(1)).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_persona(row) -> Persona:
    links: list[str] = json.loads(row.external_links) if row.external_links else []
    return Persona(
        id=row.id,
        name=row.name,
        bio=row.bio,
        role=row.role,
        profile_image_url=row.profile_image_url,
        more_info_text=row.more_info_text,
        external_links=links,
        display_order=row.display_order,
        is_active=bool(row.is_active),
        created_at=row.created_at,
        article_count=row.article_count or 0,
    )


def _row_to_article(row) -> Article:
    tags: list[str] = json.loads(row.tags) if row.tags else []
    return Article(
        id=row.id,
        title=row.title,
        body=row.body,
        excerpt=row.excerpt,
        featured_image_url=row.featured_image_url,
        persona_id=row.persona_id,
        category=row.category,
        tags=tags,
        style=row.style,
        is_public=bool(row.is_public),
        published_at=row.published_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        persona_name=row.persona_name or "",
        persona_role=row.persona_role or "",
    )
