"""Tests for remote.py - HTTP client for the comment service."""

from unittest.mock import MagicMock

import pytest
import requests

from clipnote.errors import RejectedError, TransportError
from clipnote.models import LibraryScope
from clipnote.remote import HttpRemoteService


def mock_response(status=200, data=None, invalid_json=False):
    response = MagicMock()
    response.status_code = status
    if invalid_json:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = data
    return response


@pytest.fixture
def http():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def service(http):
    return HttpRemoteService(api_url="http://svc.test/", timeout=3, session=http,
                             headers={"X-User-Id": "42"})


class TestAddComment:
    """Tests for add_comment."""

    def test_success(self, service, http):
        http.request.return_value = mock_response(data={
            "success": True,
            "message": "Comment added successfully.",
            "comment": {"id": 9, "timestamp": 125, "body": "Great work",
                        "category": "general", "authorDisplayName": "Grace",
                        "createdDisplay": "today"},
        })
        comment = service.add_comment(7, 3, 125, "Great work", "general")

        assert comment.id == 9
        assert comment.author_display_name == "Grace"
        method, url = http.request.call_args.args
        assert (method, url) == ("POST", "http://svc.test/api/comments")
        kwargs = http.request.call_args.kwargs
        assert kwargs["timeout"] == 3
        assert kwargs["json"] == {
            "submissionId": 7, "assignmentId": 3, "timestamp": 125,
            "body": "Great work", "category": "general", "draftAttachmentRef": 0,
        }

    def test_headers_applied(self, service, http):
        assert http.headers["X-User-Id"] == "42"

    def test_success_false_raises_rejected(self, service, http):
        http.request.return_value = mock_response(data={
            "success": False, "message": "Error adding comment: submission not found",
        })
        with pytest.raises(RejectedError) as exc_info:
            service.add_comment(7, 3, 1, "x", "general")
        assert exc_info.value.message == "Error adding comment: submission not found"
        assert exc_info.value.operation == "add_comment"

    def test_success_without_comment(self, service, http):
        http.request.return_value = mock_response(data={"success": True})
        with pytest.raises(TransportError):
            service.add_comment(7, 3, 1, "x", "general")

    def test_invalid_request_rejected_without_sending(self, service, http):
        with pytest.raises(RejectedError) as exc_info:
            service.add_comment(0, 3, 1, "x", "general")
        assert exc_info.value.operation == "add_comment"
        assert exc_info.value.message.startswith("Invalid request")
        http.request.assert_not_called()


class TestErrorMapping:
    """Tests for transport and HTTP error handling."""

    def test_connection_error(self, service, http):
        http.request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(TransportError, match="Could not reach"):
            service.delete_comment(1)

    def test_timeout(self, service, http):
        http.request.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(TransportError):
            service.get_library(3, 5)

    def test_server_error(self, service, http):
        http.request.return_value = mock_response(status=502, data={})
        with pytest.raises(TransportError, match="HTTP 502"):
            service.delete_comment(1)

    def test_invalid_json(self, service, http):
        http.request.return_value = mock_response(invalid_json=True)
        with pytest.raises(TransportError, match="invalid JSON"):
            service.delete_comment(1)

    def test_client_error_message(self, service, http):
        http.request.return_value = mock_response(status=401, data={"error": "Not authenticated"})
        with pytest.raises(RejectedError, match="Not authenticated"):
            service.delete_comment(1)

    def test_client_error_non_dict(self, service, http):
        http.request.return_value = mock_response(status=404, data=["nope"])
        with pytest.raises(RejectedError, match="HTTP 404"):
            service.delete_comment(1)

    def test_unexpected_shape(self, service, http):
        http.request.return_value = mock_response(data={"personal": "not a list"})
        with pytest.raises(TransportError, match="Unexpected response"):
            service.get_library(3, 5)


class TestOtherOperations:
    """Tests for delete and library calls."""

    def test_delete_comment(self, service, http):
        http.request.return_value = mock_response(
            data={"success": True, "message": "Comment deleted successfully."}
        )
        assert service.delete_comment(12) == "Comment deleted successfully."
        assert http.request.call_args.args == ("DELETE", "http://svc.test/api/comments/12")

    def test_get_library(self, service, http):
        http.request.return_value = mock_response(data={
            "personal": [{"id": 1, "text": "Nice", "category": "praise",
                          "ownedByCurrentUser": True}],
            "shared": [{"id": 2, "text": "Fix this", "category": "weird"}],
        })
        snapshot = service.get_library(3, 5)
        assert http.request.call_args.kwargs["params"] == {"assignmentId": 3, "courseId": 5}
        assert snapshot.personal[0].scope is LibraryScope.PERSONAL
        assert snapshot.shared[0].scope is LibraryScope.SHARED
        assert snapshot.shared[0].category.value == "general"
        assert snapshot.shared[0].owned_by_current_user is False

    def test_save_library_item(self, service, http):
        http.request.return_value = mock_response(data={"success": True, "itemId": 33})
        assert service.save_library_item(3, "text", "praise", course_id=5) == 33
        assert http.request.call_args.kwargs["json"]["courseId"] == 5

    def test_save_library_item_rejected(self, service, http):
        http.request.return_value = mock_response(data={
            "success": False, "message": "You do not have permission to edit this item.",
        })
        with pytest.raises(RejectedError, match="permission"):
            service.save_library_item(3, "text", "praise", existing_item_id=8)

    def test_delete_library_item_default_message(self, service, http):
        http.request.return_value = mock_response(data={"success": False})
        with pytest.raises(RejectedError, match="Failed to delete library comment."):
            service.delete_library_item(3, 8)
        assert http.request.call_args.kwargs["params"] == {"assignmentId": 3}
