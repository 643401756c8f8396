"""
API request and response models for the Intelligencer admin endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in content/models.py,
which own the internal domain representation. Route handlers map between the two.

JSON keys are camelCase on the wire (siteName, personaId, isPublic) to match
the admin forms; Python attributes stay snake_case. populate_by_name lets
callers send either spelling.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from content.models import Article, Persona, SiteSettings

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    reporter = "reporter"
    commentator = "commentator"
    contributor = "contributor"


class StyleEnum(str, Enum):
    analysis = "analysis"
    commentary = "commentary"
    satire = "satire"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _split_list(value):
    """Accept either a JSON list or a comma-separated string; drop blanks."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class _CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str
    expires_in: int
    email: str
    name: str


class MeResponse(BaseModel):
    """The session identity carried by the token."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str


# ---------------------------------------------------------------------------
# Personas
# ---------------------------------------------------------------------------


class PersonaIn(_CamelModel):
    """Request body for POST /api/admin/personas and PUT /api/admin/persona/{id}.

    On PUT only the fields present in the payload change; an omitted field
    keeps its stored value. Send null or "" to clear an optional field.
    """

    name: str = Field(min_length=1, max_length=255)
    bio: str = Field(min_length=1, max_length=5000)
    role: RoleEnum = RoleEnum.reporter
    profile_image_url: Optional[str] = Field(default=None, max_length=2000)
    more_info_text: Optional[str] = Field(default=None, max_length=5000)
    external_links: list[str] = Field(default_factory=list, max_length=20)
    display_order: int = 0
    is_active: Optional[bool] = None

    @field_validator("profile_image_url", "more_info_text", mode="before")
    @classmethod
    def empty_as_none(cls, value):
        return _blank_to_none(value)

    @field_validator("external_links", mode="before")
    @classmethod
    def split_links(cls, value):
        return _split_list(value)

    def changed_fields(self) -> dict:
        """Store keyword arguments for the fields the client actually sent."""
        fields = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if name == "role":
                value = value.value
            elif name == "is_active" and value is None:
                continue
            fields[name] = value
        return fields


class PersonaOut(_CamelResponse):
    id: int
    name: str
    bio: str
    role: str
    profile_image_url: Optional[str]
    more_info_text: Optional[str]
    external_links: list[str]
    display_order: int
    is_active: bool
    article_count: int
    created_at: str

    @classmethod
    def from_domain(cls, persona: Persona) -> "PersonaOut":
        return cls(
            id=persona.id,
            name=persona.name,
            bio=persona.bio,
            role=persona.role,
            profile_image_url=persona.profile_image_url,
            more_info_text=persona.more_info_text,
            external_links=persona.external_links,
            display_order=persona.display_order,
            is_active=persona.is_active,
            article_count=persona.article_count,
            created_at=persona.created_at,
        )


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------


# Fields a PUT may omit; the stored value is kept.
_ARTICLE_OPTIONAL = frozenset({"excerpt", "featured_image_url", "category", "tags", "style", "is_public"})


class ArticleIn(_CamelModel):
    """Request body for POST /api/admin/articles and PUT /api/admin/article/{id}.

    An empty excerpt is generated from the body by the store. On PUT, optional
    fields missing from the payload keep the article's stored values.
    """

    title: str = Field(min_length=1, max_length=500)
    body: str = Field(min_length=1)
    excerpt: str = Field(default="", max_length=2000)
    featured_image_url: Optional[str] = Field(default=None, max_length=2000)
    persona_id: int
    category: Optional[str] = Field(default=None, max_length=100)
    tags: list[str] = Field(default_factory=list, max_length=30)
    style: StyleEnum = StyleEnum.analysis
    is_public: bool = True

    @field_validator("featured_image_url", "category", mode="before")
    @classmethod
    def empty_as_none(cls, value):
        return _blank_to_none(value)

    @field_validator("excerpt", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return value or ""

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return _split_list(value)

    def to_domain(self, current: Optional[Article] = None) -> Article:
        article = Article(
            title=self.title,
            body=self.body,
            excerpt=self.excerpt,
            featured_image_url=self.featured_image_url,
            persona_id=self.persona_id,
            category=self.category,
            tags=self.tags,
            style=self.style.value,
            is_public=self.is_public,
        )
        if current is not None:
            for name in _ARTICLE_OPTIONAL - self.model_fields_set:
                setattr(article, name, getattr(current, name))
        return article



class PersonaSummary(_CamelResponse):
    id: int
    name: str
    role: str


class ArticleOut(_CamelResponse):
    id: int
    title: str
    body: str
    excerpt: str
    featured_image_url: Optional[str]
    persona_id: int
    persona_name: str
    persona: PersonaSummary
    category: Optional[str]
    tags: list[str]
    style: str
    is_public: bool
    published_at: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, article: Article) -> "ArticleOut":
        return cls(
            id=article.id,
            title=article.title,
            body=article.body,
            excerpt=article.excerpt,
            featured_image_url=article.featured_image_url,
            persona_id=article.persona_id,
            persona_name=article.persona_name,
            persona=PersonaSummary(id=article.persona_id, name=article.persona_name, role=article.persona_role),
            category=article.category,
            tags=article.tags,
            style=article.style,
            is_public=article.is_public,
            published_at=article.published_at,
            created_at=article.created_at,
            updated_at=article.updated_at,
        )


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class SettingsIn(_CamelModel):
    """Request body for PUT /api/admin/settings."""

    site_name: str = Field(min_length=1, max_length=255)
    tagline: Optional[str] = Field(default=None, max_length=500)
    is_public: bool = True

    @field_validator("tagline", mode="before")
    @classmethod
    def empty_as_none(cls, value):
        return _blank_to_none(value)


class SettingsOut(_CamelResponse):
    id: int
    site_name: str
    tagline: Optional[str]
    is_public: bool

    @classmethod
    def from_domain(cls, settings: SiteSettings) -> "SettingsOut":
        return cls(
            id=settings.id,
            site_name=settings.site_name,
            tagline=settings.tagline,
            is_public=settings.is_public,
        )
