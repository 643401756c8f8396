"""
content/models.py -- Domain dataclasses for editorial content.

These are pure data containers with zero logic. Business rules (excerpt
generation, publication stamping, author validation) live in content/store.py.

Separation of concerns: these dataclasses are the content domain's truth;
api/models.py owns the JSON contract and maps between the two.
"""

from dataclasses import dataclass, field
from typing import Optional

PERSONA_ROLES = ("reporter", "commentator", "contributor")
ARTICLE_STYLES = ("analysis", "commentary", "satire")


@dataclass
class Persona:
    """An AI-generated author identity that articles are attributed to.

    Personas are never hard-deleted: deactivation flips is_active so existing
    articles keep a valid author reference. article_count is derived at read
    time and ignored on write.

    id is None before the record is written to the database.
    """

    name: str
    bio: str
    role: str = "reporter"  # "reporter" | "commentator" | "contributor"
    profile_image_url: Optional[str] = None
    more_info_text: Optional[str] = None
    external_links: list[str] = field(default_factory=list)
    display_order: int = 0
    is_active: bool = True
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    article_count: int = 0


@dataclass
class Article:
    """A content piece attributed to exactly one persona.

    excerpt is generated from body when left empty. published_at is stamped
    the first time the article is saved as public and kept afterwards.
    persona_name / persona_role are read-side denormalizations from the join.
    """

    title: str
    body: str
    persona_id: int
    excerpt: str = ""
    featured_image_url: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    style: str = "analysis"  # "analysis" | "commentary" | "satire"
    is_public: bool = True
    published_at: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
    persona_name: str = ""
    persona_role: str = ""


@dataclass
class SiteSettings:
    """The single site-wide settings row (id is always 1)."""

    site_name: str
    tagline: Optional[str] = None
    is_public: bool = True
    id: int = 1
