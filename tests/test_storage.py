"""Tests for storage.py - SQLite persistence."""

import pytest

from clipnote.categories import CommentCategory
from clipnote.models import LibraryScope
from clipnote.storage import CommentDatabase, SubmissionRecord


@pytest.fixture
def db(temp_dir):
    return CommentDatabase(temp_dir / "nested" / "clipnote.db")


class TestSubmissions:
    """Tests for submission records."""

    def test_save_and_get(self, db):
        db.save_submission(SubmissionRecord(7, 3, 5, "https://youtu.be/dQw4w9WgXcQ", "dQw4w9WgXcQ"))
        record = db.get_submission(7)
        assert record.video_id == "dQw4w9WgXcQ"
        assert record.course_id == 5
        assert db.get_submission(8) is None

    def test_creates_parent_directory(self, temp_dir):
        CommentDatabase(temp_dir / "a" / "b" / "c.db")
        assert (temp_dir / "a" / "b" / "c.db").exists()


class TestComments:
    """Tests for comment rows."""

    def test_add_and_list_ordered(self, db):
        db.add_comment(7, 3, 42, "Grace", 90, "<p>b</p>", "correction")
        db.add_comment(7, 3, 42, "Grace", 10, "<p>a</p>", "praise")
        db.add_comment(8, 3, 42, "Grace", 5, "<p>other</p>", "general")
        records = db.list_comments(7)
        assert [r.timestamp for r in records] == [10, 90]

    def test_to_comment(self, db):
        record = db.add_comment(7, 3, 42, "Grace", 10, "<p>a</p>", "bogus")
        comment = record.to_comment()
        assert comment.author_display_name == "Grace"
        assert comment.category is CommentCategory.GENERAL
        assert comment.created_display

    def test_update_body(self, db):
        record = db.add_comment(7, 3, 42, "Grace", 10, "old", "general")
        db.update_comment_body(record.id, "new")
        assert db.get_comment(record.id).body == "new"

    def test_delete(self, db):
        record = db.add_comment(7, 3, 42, "Grace", 10, "x", "general")
        assert db.delete_comment(record.id) is True
        assert db.delete_comment(record.id) is False
        assert db.get_comment(record.id) is None


class TestLibrary:
    """Tests for comment library rows."""

    def test_personal_and_shared_queries(self, db):
        personal = db.insert_library_item(42, 0, "mine", "praise")
        db.insert_library_item(43, 0, "theirs", "praise")
        shared = db.insert_library_item(43, 5, "course", "question")
        assert [r.id for r in db.personal_items(42)] == [personal]
        assert [r.id for r in db.shared_items(5)] == [shared]
        assert db.shared_items(0) == []

    def test_newest_first(self, db):
        first = db.insert_library_item(42, 0, "first", "general")
        second = db.insert_library_item(42, 0, "second", "general")
        assert [r.id for r in db.personal_items(42)] == [second, first]

    def test_to_item(self, db):
        item_id = db.insert_library_item(43, 5, "course", "question")
        record = db.get_library_item(item_id)
        item = record.to_item(viewer_id=42)
        assert item.scope is LibraryScope.SHARED
        assert item.owned_by_current_user is False
        assert record.to_item(viewer_id=43).owned_by_current_user is True

    def test_update_and_delete(self, db):
        item_id = db.insert_library_item(42, 0, "old", "general")
        db.update_library_item(item_id, "new", "praise")
        record = db.get_library_item(item_id)
        assert (record.text, record.category) == ("new", "praise")
        assert db.delete_library_item(item_id) is True
        assert db.get_library_item(item_id) is None
