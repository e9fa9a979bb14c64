"""
Reference comment service.

A small Flask app implementing the remote operations the grading core
calls (add/delete comment, get/save/delete library item) plus the
initialization payload and the server-rendered comment list for a
submission. Authentication is the hosting platform's job: the caller's
identity arrives in the ``X-User-Id`` and ``X-User-Name`` headers.
"""

from pathlib import Path
from typing import Callable, Optional

from flask import Flask, Response, g, jsonify, request
from pydantic import ValidationError as PydanticValidationError

from .categories import CategoryRegistry, CommentCategory
from .config import get_db_path
from .logging import get_logger
from .markup import is_blank
from .media import extract_video_id
from .schemas import AddCommentRequest, RegisterSubmissionRequest, SaveLibraryItemRequest
from .storage import CommentDatabase, SubmissionRecord
from .views import render_comment_list

logger = get_logger(__name__)

DRAFT_URL_PREFIX = "@@DRAFTFILE@@/"
ATTACHMENT_URL = "/attachments/{comment_id}/"


def rewrite_draft_urls(body: str, comment_id: int) -> str:
    """Point draft attachment references at the comment's permanent location."""
    return body.replace(DRAFT_URL_PREFIX, ATTACHMENT_URL.format(comment_id=comment_id))


def _validation_message(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid {field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")


def create_app(
    db_path: Optional[Path] = None,
    sanitizer: Optional[Callable[[str], str]] = None,
    registry: Optional[CategoryRegistry] = None,
) -> Flask:
    """Create and configure the comment service Flask app."""
    app = Flask(__name__)
    app.config["DB"] = CommentDatabase(db_path or get_db_path())
    app.config["SANITIZE"] = sanitizer or (lambda html: html)
    app.config["REGISTRY"] = registry or CategoryRegistry()

    def db() -> CommentDatabase:
        return app.config["DB"]

    def clean(html: str) -> str:
        return app.config["SANITIZE"](html.strip())

    @app.before_request
    def load_user():
        g.user_id = None
        g.user_name = request.headers.get("X-User-Name", "")
        raw = request.headers.get("X-User-Id")
        if raw:
            try:
                g.user_id = int(raw)
            except ValueError:
                g.user_id = None
        if request.path.startswith("/api/") and g.user_id is None:
            return jsonify({"error": "Not authenticated"}), 401
        return None

    def parse(model):
        data = request.get_json(silent=True)
        if data is None:
            return None, (jsonify({"error": "Expected a JSON body"}), 400)
        try:
            return model.model_validate(data), None
        except PydanticValidationError as e:
            return None, (jsonify({"error": _validation_message(e)}), 400)

    # ==========================================================================
    # Submissions
    # ==========================================================================

    @app.route("/api/submissions", methods=["POST"])
    def register_submission():
        """Record the video link for a submission."""
        data, error = parse(RegisterSubmissionRequest)
        if error:
            return error

        video_id = extract_video_id(data.videoUrl)
        if not video_id:
            return jsonify({"error": "Not a recognised video URL"}), 400

        record = db().save_submission(
            SubmissionRecord(
                id=data.submissionId,
                assignment_id=data.assignmentId,
                course_id=data.courseId,
                video_url=data.videoUrl,
                video_id=video_id,
            )
        )
        logger.info("Registered submission %d (video %s)", record.id, record.video_id)
        return jsonify({"submissionId": record.id, "mediaId": record.video_id}), 201

    @app.route("/api/submissions/<int:submission_id>/init")
    def init_payload(submission_id: int):
        """Initialization payload for the grading (or read-only) view."""
        submission = db().get_submission(submission_id)
        if submission is None:
            return jsonify({"error": "Submission not found"}), 404

        read_only = request.args.get("readOnly", "false").lower() in ("1", "true", "yes")
        comments = [r.to_comment() for r in db().list_comments(submission_id)]
        return jsonify(
            {
                "mediaId": submission.video_id,
                "submissionId": submission.id,
                "assignmentId": submission.assignment_id,
                "comments": [c.to_dict() for c in comments],
                "categoryDefinitions": app.config["REGISTRY"].to_dict(),
                "readOnly": read_only,
                "courseId": 0 if read_only else submission.course_id,
            }
        )

    @app.route("/submissions/<int:submission_id>/comments")
    def comment_list_html(submission_id: int):
        """Server-rendered comment list, same markup the client appends."""
        read_only = request.args.get("readOnly", "false").lower() in ("1", "true", "yes")
        comments = [r.to_comment() for r in db().list_comments(submission_id)]
        html = render_comment_list(comments, app.config["REGISTRY"], can_delete=not read_only)
        return Response(html, mimetype="text/html")

    # ==========================================================================
    # Comments
    # ==========================================================================

    @app.route("/api/comments", methods=["POST"])
    def add_comment():
        """Add a timestamped comment to a submission."""
        data, error = parse(AddCommentRequest)
        if error:
            return error

        submission = db().get_submission(data.submissionId)
        if submission is None or submission.assignment_id != data.assignmentId:
            return jsonify({
                "success": False,
                "message": "Error adding comment: submission not found",
                "comment": None,
            })

        body = clean(data.body)
        if is_blank(body):
            return jsonify({
                "success": False,
                "message": "Error adding comment: comment text is empty",
                "comment": None,
            })

        category = CommentCategory.normalize(data.category).value
        record = db().add_comment(
            submission_id=data.submissionId,
            assignment_id=data.assignmentId,
            grader_id=g.user_id,
            grader_name=g.user_name,
            timestamp=data.timestamp,
            body=body,
            category=category,
        )

        if data.draftAttachmentRef > 0:
            db().update_comment_body(record.id, rewrite_draft_urls(record.body, record.id))
            record = db().get_comment(record.id)

        logger.info("Created comment %d at %ds on submission %d",
                    record.id, record.timestamp, record.submission_id)
        return jsonify({
            "success": True,
            "message": "Comment added successfully.",
            "comment": record.to_comment().to_dict(),
        })

    @app.route("/api/comments/<int:comment_id>", methods=["DELETE"])
    def delete_comment(comment_id: int):
        """Delete a comment."""
        if not db().delete_comment(comment_id):
            return jsonify({
                "success": False,
                "message": "Error deleting comment: comment not found",
            })
        logger.info("Deleted comment %d", comment_id)
        return jsonify({"success": True, "message": "Comment deleted successfully."})

    # ==========================================================================
    # Comment library
    # ==========================================================================

    @app.route("/api/library", methods=["GET"])
    def get_library():
        """Personal items of the caller plus items shared with the course."""
        course_id = request.args.get("courseId", 0, type=int)
        personal = db().personal_items(g.user_id)
        shared = db().shared_items(course_id)

        def fmt(records):
            return [r.to_item(g.user_id).to_dict() for r in records]

        return jsonify({"personal": fmt(personal), "shared": fmt(shared)})

    @app.route("/api/library", methods=["POST"])
    def save_library_item():
        """Create a library item, or update one the caller owns."""
        data, error = parse(SaveLibraryItemRequest)
        if error:
            return error

        text = clean(data.body)
        if is_blank(text):
            return jsonify({"success": False, "itemId": 0, "message": "Comment text is empty."})
        category = CommentCategory.normalize(data.category).value

        if data.existingItemId > 0:
            existing = db().get_library_item(data.existingItemId)
            if existing is None:
                return jsonify({"success": False, "itemId": 0, "message": "Library item not found."})
            if existing.user_id != g.user_id:
                return jsonify({
                    "success": False,
                    "itemId": 0,
                    "message": "You do not have permission to edit this item.",
                })
            db().update_library_item(existing.id, text, category)
            item_id = existing.id
        else:
            item_id = db().insert_library_item(g.user_id, data.courseId, text, category)

        logger.info("Saved library item %d for user %d", item_id, g.user_id)
        return jsonify({"success": True, "itemId": item_id})

    @app.route("/api/library/<int:item_id>", methods=["DELETE"])
    def delete_library_item(item_id: int):
        """Delete a library item; only its owner may do so."""
        item = db().get_library_item(item_id)
        if item is None:
            return jsonify({"success": False, "message": "Library item not found."})
        if item.user_id != g.user_id:
            return jsonify({
                "success": False,
                "message": "You do not have permission to delete this item.",
            })
        db().delete_library_item(item_id)
        logger.info("Deleted library item %d", item_id)
        return jsonify({"success": True})

    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 8765,
    db_path: Optional[Path] = None,
):
    """Run the comment service."""
    app = create_app(db_path)
    logger.info("Starting comment service at http://%s:%d", host, port)
    logger.info("Database: %s", app.config["DB"].db_path)
    app.run(host=host, port=port, debug=False, threaded=True)
