"""
SQLite persistence for the reference comment service.

Three tables: submissions (video link per submission), timestamped comments
and the comment library. Rows are returned as plain dataclasses; display
strings (author name, created date) are resolved when a comment is read.
"""

import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .categories import CommentCategory
from .models import Comment, LibraryItem, LibraryScope

DATE_FORMAT = "%A, %d %B %Y, %I:%M %p"


def format_created(epoch: int) -> str:
    return datetime.fromtimestamp(epoch).strftime(DATE_FORMAT)


@dataclass
class SubmissionRecord:
    id: int
    assignment_id: int
    course_id: int
    video_url: str
    video_id: str


@dataclass
class CommentRecord:
    id: int
    submission_id: int
    assignment_id: int
    grader_id: int
    grader_name: str
    timestamp: int
    body: str
    category: str
    created_at: int

    def to_comment(self) -> Comment:
        return Comment(
            id=self.id,
            timestamp=self.timestamp,
            body=self.body,
            category=CommentCategory.normalize(self.category),
            author_display_name=self.grader_name,
            created_display=format_created(self.created_at),
        )


@dataclass
class LibraryRecord:
    id: int
    user_id: int
    course_id: int
    text: str
    category: str
    sort_order: int
    created_at: int

    def to_item(self, viewer_id: int) -> LibraryItem:
        return LibraryItem(
            id=self.id,
            text=self.text,
            category=CommentCategory.normalize(self.category),
            scope=LibraryScope.SHARED if self.course_id else LibraryScope.PERSONAL,
            owned_by_current_user=self.user_id == viewer_id,
        )


class CommentDatabase:
    """SQLite-backed storage for submissions, comments and library items."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS submissions (
                    id INTEGER PRIMARY KEY,
                    assignment_id INTEGER NOT NULL,
                    course_id INTEGER NOT NULL DEFAULT 0,
                    video_url TEXT NOT NULL,
                    video_id TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS comments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    submission_id INTEGER NOT NULL,
                    assignment_id INTEGER NOT NULL,
                    grader_id INTEGER NOT NULL,
                    grader_name TEXT NOT NULL DEFAULT '',
                    timestamp INTEGER NOT NULL,
                    body TEXT NOT NULL,
                    category TEXT NOT NULL DEFAULT 'general',
                    created_at INTEGER NOT NULL,
                    modified_at INTEGER NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_comments_submission_time
                ON comments(submission_id, timestamp)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS comment_library (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    course_id INTEGER NOT NULL DEFAULT 0,
                    text TEXT NOT NULL,
                    category TEXT NOT NULL DEFAULT 'general',
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    created_at INTEGER NOT NULL,
                    modified_at INTEGER NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_library_owner
                ON comment_library(user_id, course_id)
            """)
            conn.commit()

    # =========================================================================
    # Submissions
    # =========================================================================

    def save_submission(self, record: SubmissionRecord) -> SubmissionRecord:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO submissions
                (id, assignment_id, course_id, video_url, video_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                (record.id, record.assignment_id, record.course_id,
                 record.video_url, record.video_id),
            )
            conn.commit()
        return record

    def get_submission(self, submission_id: int) -> Optional[SubmissionRecord]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM submissions WHERE id = ?", (submission_id,)
            ).fetchone()
        if row is None:
            return None
        return SubmissionRecord(**dict(row))

    # =========================================================================
    # Comments
    # =========================================================================

    def add_comment(
        self,
        submission_id: int,
        assignment_id: int,
        grader_id: int,
        grader_name: str,
        timestamp: int,
        body: str,
        category: str,
    ) -> CommentRecord:
        now = int(time.time())
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO comments
                (submission_id, assignment_id, grader_id, grader_name, timestamp,
                 body, category, created_at, modified_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (submission_id, assignment_id, grader_id, grader_name, timestamp,
                 body, category, now, now),
            )
            conn.commit()
            comment_id = cursor.lastrowid
        return self.get_comment(comment_id)

    def update_comment_body(self, comment_id: int, body: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE comments SET body = ?, modified_at = ? WHERE id = ?",
                (body, int(time.time()), comment_id),
            )
            conn.commit()

    def get_comment(self, comment_id: int) -> Optional[CommentRecord]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, submission_id, assignment_id, grader_id, grader_name,
                       timestamp, body, category, created_at
                FROM comments WHERE id = ?
                """,
                (comment_id,),
            ).fetchone()
        return CommentRecord(**dict(row)) if row else None

    def list_comments(self, submission_id: int) -> list[CommentRecord]:
        """Comments for a submission in ascending timestamp order."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, submission_id, assignment_id, grader_id, grader_name,
                       timestamp, body, category, created_at
                FROM comments WHERE submission_id = ?
                ORDER BY timestamp, id
                """,
                (submission_id,),
            ).fetchall()
        return [CommentRecord(**dict(row)) for row in rows]

    def delete_comment(self, comment_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM comments WHERE id = ?", (comment_id,))
            conn.commit()
            return cursor.rowcount > 0

    # =========================================================================
    # Comment library
    # =========================================================================

    def get_library_item(self, item_id: int) -> Optional[LibraryRecord]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, user_id, course_id, text, category, sort_order, created_at
                FROM comment_library WHERE id = ?
                """,
                (item_id,),
            ).fetchone()
        return LibraryRecord(**dict(row)) if row else None

    def personal_items(self, user_id: int) -> list[LibraryRecord]:
        return self._library_query("user_id = ? AND course_id = 0", (user_id,))

    def shared_items(self, course_id: int) -> list[LibraryRecord]:
        if course_id <= 0:
            return []
        return self._library_query("course_id = ?", (course_id,))

    def _library_query(self, where: str, params: tuple) -> list[LibraryRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT id, user_id, course_id, text, category, sort_order, created_at
                FROM comment_library WHERE {where}
                ORDER BY sort_order ASC, created_at DESC, id DESC
                """,
                params,
            ).fetchall()
        return [LibraryRecord(**dict(row)) for row in rows]

    def insert_library_item(self, user_id: int, course_id: int, text: str, category: str) -> int:
        now = int(time.time())
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO comment_library
                (user_id, course_id, text, category, sort_order, created_at, modified_at)
                VALUES (?, ?, ?, ?, 0, ?, ?)
                """,
                (user_id, course_id, text, category, now, now),
            )
            conn.commit()
            return cursor.lastrowid

    def update_library_item(self, item_id: int, text: str, category: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE comment_library SET text = ?, category = ?, modified_at = ?
                WHERE id = ?
                """,
                (text, category, int(time.time()), item_id),
            )
            conn.commit()

    def delete_library_item(self, item_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM comment_library WHERE id = ?", (item_id,))
            conn.commit()
            return cursor.rowcount > 0
