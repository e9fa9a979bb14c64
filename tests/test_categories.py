"""Tests for categories.py - category enum and registry."""

from clipnote.categories import (
    DEFAULT_CATEGORIES,
    CategoryInfo,
    CategoryRegistry,
    CommentCategory,
)


class TestCommentCategory:
    """Tests for category normalization."""

    def test_known_value(self):
        assert CommentCategory.normalize("praise") is CommentCategory.PRAISE

    def test_enum_passthrough(self):
        assert CommentCategory.normalize(CommentCategory.QUESTION) is CommentCategory.QUESTION

    def test_unknown_falls_back_to_general(self):
        assert CommentCategory.normalize("nonsense") is CommentCategory.GENERAL

    def test_none_falls_back_to_general(self):
        assert CommentCategory.normalize(None) is CommentCategory.GENERAL

    def test_is_string(self):
        """Categories serialize as their plain key."""
        assert CommentCategory.CORRECTION == "correction"


class TestCategoryRegistry:
    """Tests for CategoryRegistry lookups."""

    def test_defaults(self):
        registry = CategoryRegistry()
        assert len(registry) == 5
        assert registry.get("praise") == CategoryInfo("Praise", "#28a745")
        assert registry.get("correction").color == "#dc3545"

    def test_unknown_key_resolves_to_general(self):
        registry = CategoryRegistry()
        assert registry.key_for("bogus") == "general"
        assert registry.get("bogus") == DEFAULT_CATEGORIES["general"]

    def test_missing_key_resolves_to_general(self):
        registry = CategoryRegistry()
        assert registry.key_for(None) == "general"
        assert registry.key_for("") == "general"

    def test_enum_key(self):
        registry = CategoryRegistry()
        assert registry.key_for(CommentCategory.SUGGESTION) == "suggestion"

    def test_custom_definitions(self):
        """Definitions from the init payload replace the defaults."""
        registry = CategoryRegistry({
            "general": {"label": "Note", "color": "#111111"},
            "praise": {"label": "Kudos", "color": "#00ff00"},
        })
        assert registry.get("praise").label == "Kudos"
        assert "question" not in registry
        assert registry.get("question").label == "Note"

    def test_definition_missing_fields(self):
        registry = CategoryRegistry({"general": {}})
        assert registry.get("general").label == "general"
        assert registry.get("general").color == "#6c757d"

    def test_to_dict(self):
        data = CategoryRegistry().to_dict()
        assert data["question"] == {"label": "Question", "color": "#6f42c1"}
        assert list(data) == list(CategoryRegistry())
