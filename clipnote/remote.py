"""
Client for the remote comment service.

The grading core treats persistence and authorization as someone else's
job: these five calls are everything it needs. ``HttpRemoteService`` talks
to :mod:`clipnote.server` (or anything speaking the same JSON) with
``requests``.
"""

from typing import Optional, Protocol, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError as PydanticValidationError

from .config import get_api_url, get_request_timeout
from .errors import RejectedError, TransportError
from .logging import get_logger
from .models import Comment, LibrarySnapshot
from .schemas import (
    AddCommentRequest,
    AddCommentResponse,
    LibraryResponse,
    SaveLibraryItemRequest,
    SaveLibraryItemResponse,
    StatusResponse,
)

logger = get_logger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)
ResponseT = TypeVar("ResponseT", bound=BaseModel)


class RemoteService(Protocol):
    def add_comment(
        self,
        submission_id: int,
        assignment_id: int,
        timestamp: int,
        body: str,
        category: str,
        draft_attachment_ref: int = 0,
    ) -> Comment: ...

    def delete_comment(self, comment_id: int) -> str: ...

    def get_library(self, assignment_id: int, course_id: int) -> LibrarySnapshot: ...

    def save_library_item(
        self,
        assignment_id: int,
        body: str,
        category: str,
        course_id: int = 0,
        existing_item_id: int = 0,
    ) -> int: ...

    def delete_library_item(self, assignment_id: int, item_id: int) -> None: ...


class HttpRemoteService:
    """JSON-over-HTTP implementation of :class:`RemoteService`."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        headers: Optional[dict] = None,
    ):
        self.api_url = (api_url or get_api_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else get_request_timeout()
        self.session = session or requests.Session()
        if headers:
            self.session.headers.update(headers)

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        model: Type[ResponseT],
        **kwargs,
    ) -> ResponseT:
        url = f"{self.api_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning("%s failed: could not reach %s: %s", operation, url, e)
            raise TransportError(f"Could not reach comment service: {e}", operation) from e

        if response.status_code >= 500:
            logger.warning("%s failed: HTTP %d", operation, response.status_code)
            raise TransportError(f"Comment service error (HTTP {response.status_code})", operation)

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError("Comment service returned invalid JSON", operation) from e

        if response.status_code >= 400:
            body = data if isinstance(data, dict) else {}
            message = body.get("error") or body.get("message") or f"HTTP {response.status_code}"
            logger.warning("%s rejected: %s", operation, message)
            raise RejectedError(message, operation)

        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise TransportError(f"Unexpected response from comment service: {e}", operation) from e

    @staticmethod
    def _build(operation: str, model: Type[RequestT], **fields) -> RequestT:
        try:
            return model(**fields)
        except PydanticValidationError as e:
            logger.warning("%s rejected locally: %s", operation, e)
            raise RejectedError(f"Invalid request: {e}", operation) from e

    @staticmethod
    def _check(operation: str, success: bool, message: str, default: str) -> None:
        if not success:
            logger.warning("%s rejected: %s", operation, message or default)
            raise RejectedError(message or default, operation)

    def add_comment(
        self,
        submission_id: int,
        assignment_id: int,
        timestamp: int,
        body: str,
        category: str,
        draft_attachment_ref: int = 0,
    ) -> Comment:
        payload = self._build(
            "add_comment",
            AddCommentRequest,
            submissionId=submission_id,
            assignmentId=assignment_id,
            timestamp=timestamp,
            body=body,
            category=category,
            draftAttachmentRef=draft_attachment_ref,
        )
        result = self._request(
            "add_comment", "POST", "/api/comments", AddCommentResponse,
            json=payload.model_dump(),
        )
        self._check("add_comment", result.success, result.message, "Failed to add comment.")
        if result.comment is None:
            raise TransportError("Comment service did not return the new comment", "add_comment")
        return result.comment.to_comment()

    def delete_comment(self, comment_id: int) -> str:
        result = self._request(
            "delete_comment", "DELETE", f"/api/comments/{comment_id}", StatusResponse,
        )
        self._check("delete_comment", result.success, result.message, "Failed to delete comment.")
        return result.message

    def get_library(self, assignment_id: int, course_id: int) -> LibrarySnapshot:
        result = self._request(
            "get_library", "GET", "/api/library", LibraryResponse,
            params={"assignmentId": assignment_id, "courseId": course_id},
        )
        return result.to_snapshot()

    def save_library_item(
        self,
        assignment_id: int,
        body: str,
        category: str,
        course_id: int = 0,
        existing_item_id: int = 0,
    ) -> int:
        payload = self._build(
            "save_library_item",
            SaveLibraryItemRequest,
            assignmentId=assignment_id,
            body=body,
            category=category,
            courseId=course_id,
            existingItemId=existing_item_id,
        )
        result = self._request(
            "save_library_item", "POST", "/api/library", SaveLibraryItemResponse,
            json=payload.model_dump(),
        )
        self._check("save_library_item", result.success, result.message,
                    "Failed to save comment to library.")
        return result.itemId

    def delete_library_item(self, assignment_id: int, item_id: int) -> None:
        result = self._request(
            "delete_library_item", "DELETE", f"/api/library/{item_id}", StatusResponse,
            params={"assignmentId": assignment_id},
        )
        self._check("delete_library_item", result.success, result.message,
                    "Failed to delete library comment.")
