"""
tests/test_content_store.py -- Unit tests for ContentStore.

These hit the store directly with an in-memory SQLite database, no HTTP.
Covers persona soft delete, article author validation, hard delete, list
ordering, excerpt generation, publication stamping, and the settings row.
"""

from __future__ import annotations

import pytest

from content.models import Article, Persona
from content.store import ContentStore, InvalidPersonaError, make_excerpt


def _persona(store: ContentStore, name: str = "Ada Byline", **kwargs) -> int:
    return store.create_persona(Persona(name=name, bio=f"{name} writes about machines.", **kwargs))


def _article(store: ContentStore, persona_id: int, title: str = "Hello", **kwargs) -> int:
    kwargs.setdefault("body", "The body of the article.")
    return store.create_article(Article(title=title, persona_id=persona_id, **kwargs))


class TestPersonas:
    def test_created_persona_is_listed(self, content_store):
        persona_id = _persona(content_store)
        listed = content_store.list_personas()
        assert [p.id for p in listed] == [persona_id]
        assert listed[0].name == "Ada Byline"
        assert listed[0].is_active is True
        assert listed[0].created_at

    def test_external_links_round_trip_as_list(self, content_store):
        persona_id = _persona(content_store, external_links=["https://a.example", "https://b.example"])
        assert content_store.get_persona(persona_id).external_links == ["https://a.example", "https://b.example"]

    def test_ordered_by_display_order_then_name(self, content_store):
        _persona(content_store, "Zed", display_order=0)
        _persona(content_store, "Amy", display_order=1)
        _persona(content_store, "Bob", display_order=0)
        assert [p.name for p in content_store.list_personas()] == ["Bob", "Zed", "Amy"]

    def test_deactivate_keeps_the_row(self, content_store):
        persona_id = _persona(content_store)
        assert content_store.deactivate_persona(persona_id) is True

        persona = content_store.get_persona(persona_id)
        assert persona is not None
        assert persona.is_active is False
        assert [p.id for p in content_store.list_personas()] == [persona_id]

    def test_deactivate_is_idempotent(self, content_store):
        persona_id = _persona(content_store)
        content_store.deactivate_persona(persona_id)
        assert content_store.deactivate_persona(persona_id) is True
        assert content_store.get_persona(persona_id).is_active is False

    def test_deactivate_unknown_returns_false(self, content_store):
        assert content_store.deactivate_persona(999) is False

    def test_active_only_filter(self, content_store):
        keep = _persona(content_store, "Keep")
        gone = _persona(content_store, "Gone")
        content_store.deactivate_persona(gone)
        assert [p.id for p in content_store.list_personas(active_only=True)] == [keep]

    def test_update_persona_fields(self, content_store):
        persona_id = _persona(content_store)
        assert content_store.update_persona(persona_id, name="Renamed", role="commentator", external_links=["x"])
        persona = content_store.get_persona(persona_id)
        assert persona.name == "Renamed"
        assert persona.role == "commentator"
        assert persona.external_links == ["x"]

    def test_update_persona_rejects_unknown_field(self, content_store):
        persona_id = _persona(content_store)
        with pytest.raises(ValueError):
            content_store.update_persona(persona_id, created_at="yesterday")

    def test_update_unknown_persona_returns_false(self, content_store):
        assert content_store.update_persona(999, name="Nobody") is False

    def test_article_count(self, content_store):
        persona_id = _persona(content_store)
        _article(content_store, persona_id, "One")
        _article(content_store, persona_id, "Two")
        assert content_store.get_persona(persona_id).article_count == 2


class TestArticles:
    def test_created_article_is_listed_with_author(self, content_store):
        persona_id = _persona(content_store)
        article_id = _article(content_store, persona_id)
        listed = content_store.list_articles()
        assert [a.id for a in listed] == [article_id]
        assert listed[0].persona_name == "Ada Byline"
        assert listed[0].persona_role == "reporter"

    def test_unknown_persona_is_rejected(self, content_store):
        with pytest.raises(InvalidPersonaError):
            _article(content_store, 12345)
        assert content_store.list_articles() == []

    def test_inactive_persona_is_rejected(self, content_store):
        persona_id = _persona(content_store)
        content_store.deactivate_persona(persona_id)
        with pytest.raises(InvalidPersonaError):
            _article(content_store, persona_id)

    def test_update_keeps_inactive_current_author(self, content_store):
        persona_id = _persona(content_store)
        article_id = _article(content_store, persona_id)
        content_store.deactivate_persona(persona_id)

        updated = Article(title="Edited", body="New body.", persona_id=persona_id)
        assert content_store.update_article(article_id, updated) is True
        assert content_store.get_article(article_id).title == "Edited"

    def test_update_cannot_move_to_inactive_author(self, content_store):
        author = _persona(content_store, "Author")
        retired = _persona(content_store, "Retired")
        content_store.deactivate_persona(retired)
        article_id = _article(content_store, author)

        with pytest.raises(InvalidPersonaError):
            content_store.update_article(article_id, Article(title="T", body="B", persona_id=retired))

    def test_update_unknown_article_returns_false(self, content_store):
        persona_id = _persona(content_store)
        assert content_store.update_article(999, Article(title="T", body="B", persona_id=persona_id)) is False

    def test_delete_removes_from_list(self, content_store):
        persona_id = _persona(content_store)
        keep = _article(content_store, persona_id, "Keep")
        drop = _article(content_store, persona_id, "Drop")

        assert content_store.delete_article(drop) is True
        assert [a.id for a in content_store.list_articles()] == [keep]
        assert content_store.get_article(drop) is None

    def test_delete_unknown_returns_false(self, content_store):
        assert content_store.delete_article(999) is False

    def test_newest_first(self, content_store):
        persona_id = _persona(content_store)
        first = _article(content_store, persona_id, "First")
        second = _article(content_store, persona_id, "Second")
        assert [a.id for a in content_store.list_articles()] == [second, first]

    def test_empty_excerpt_is_generated(self, content_store):
        persona_id = _persona(content_store)
        article_id = _article(content_store, persona_id, body="Short body text.")
        assert content_store.get_article(article_id).excerpt == "Short body text."

    def test_explicit_excerpt_is_kept(self, content_store):
        persona_id = _persona(content_store)
        article_id = _article(content_store, persona_id, excerpt="Hand written.")
        assert content_store.get_article(article_id).excerpt == "Hand written."

    def test_published_at_stamped_for_public_only(self, content_store):
        persona_id = _persona(content_store)
        public = _article(content_store, persona_id, "Public", is_public=True)
        draft = _article(content_store, persona_id, "Draft", is_public=False)
        assert content_store.get_article(public).published_at is not None
        assert content_store.get_article(draft).published_at is None

    def test_published_at_stamped_on_first_publish_and_kept(self, content_store):
        persona_id = _persona(content_store)
        article_id = _article(content_store, persona_id, is_public=False)

        content_store.update_article(article_id, Article(title="T", body="B", persona_id=persona_id, is_public=True))
        stamped = content_store.get_article(article_id).published_at
        assert stamped is not None

        content_store.update_article(article_id, Article(title="T", body="B", persona_id=persona_id, is_public=False))
        assert content_store.get_article(article_id).published_at == stamped

    def test_public_only_hides_drafts_and_inactive_authors(self, content_store):
        active = _persona(content_store, "Active")
        retired = _persona(content_store, "Retired")
        shown = _article(content_store, active, "Shown")
        _article(content_store, active, "Draft", is_public=False)
        _article(content_store, retired, "Orphaned")
        content_store.deactivate_persona(retired)

        assert [a.id for a in content_store.list_articles(public_only=True)] == [shown]
        assert len(content_store.list_articles()) == 3

    def test_tags_round_trip_as_list(self, content_store):
        persona_id = _persona(content_store)
        article_id = _article(content_store, persona_id, tags=["ai", "policy"])
        assert content_store.get_article(article_id).tags == ["ai", "policy"]


class TestSiteSettings:
    def test_seeded_on_first_start(self, content_store):
        settings = content_store.get_site_settings()
        assert settings.id == 1
        assert settings.site_name == "The Artificial Intelligencer"
        assert settings.is_public is True

    def test_update_in_place(self, content_store):
        updated = content_store.update_site_settings("New Name", "A tagline", False)
        assert updated.id == 1
        assert updated.site_name == "New Name"
        assert updated.tagline == "A tagline"
        assert updated.is_public is False
        assert content_store.get_site_settings() == updated

    def test_reopening_does_not_reseed(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'content.db'}"
        store = ContentStore(db_url=url)
        store.update_site_settings("Kept", None, True)
        store.close()

        reopened = ContentStore(db_url=url, default_site_name="Ignored")
        assert reopened.get_site_settings().site_name == "Kept"
        reopened.close()


class TestMakeExcerpt:
    def test_short_body_unchanged(self):
        assert make_excerpt("A short body.") == "A short body."

    def test_collapses_whitespace(self):
        assert make_excerpt("Line one.\n\nLine   two.") == "Line one. Line two."

    def test_long_body_cut_at_word_boundary(self):
        body = "word " * 100
        excerpt = make_excerpt(body, limit=23)
        assert excerpt == "word word word word…"
        assert len(excerpt) <= 24
