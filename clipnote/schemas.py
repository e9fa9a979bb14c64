"""Pydantic models for the remote comment service's requests and responses."""

from typing import Optional

from pydantic import BaseModel, Field

from .categories import CommentCategory
from .models import Comment, LibraryItem, LibraryScope, LibrarySnapshot


# Requests


class AddCommentRequest(BaseModel):
    submissionId: int = Field(..., gt=0)
    assignmentId: int = Field(..., gt=0)
    timestamp: int = Field(..., ge=0, description="Video position in whole seconds")
    body: str
    category: str = Field(default=CommentCategory.GENERAL.value)
    draftAttachmentRef: int = Field(default=0, ge=0)


class SaveLibraryItemRequest(BaseModel):
    assignmentId: int = Field(..., gt=0)
    body: str
    category: str = Field(default=CommentCategory.GENERAL.value)
    courseId: int = Field(default=0, ge=0, description="0 saves to the personal library")
    existingItemId: int = Field(default=0, ge=0, description="0 creates a new item")


class RegisterSubmissionRequest(BaseModel):
    submissionId: int = Field(..., gt=0)
    assignmentId: int = Field(..., gt=0)
    courseId: int = Field(default=0, ge=0)
    videoUrl: str


# Responses


class CommentPayload(BaseModel):
    id: int
    timestamp: int = Field(..., ge=0)
    body: str
    category: str = CommentCategory.GENERAL.value
    authorDisplayName: str = ""
    createdDisplay: str = ""

    def to_comment(self) -> Comment:
        return Comment.from_dict(self.model_dump())


class AddCommentResponse(BaseModel):
    success: bool
    message: str = ""
    comment: Optional[CommentPayload] = None


class StatusResponse(BaseModel):
    success: bool
    message: str = ""


class LibraryItemPayload(BaseModel):
    id: int
    text: str
    category: str = CommentCategory.GENERAL.value
    ownedByCurrentUser: bool = False

    def to_item(self, scope: LibraryScope) -> LibraryItem:
        return LibraryItem.from_dict(self.model_dump(), scope)


class LibraryResponse(BaseModel):
    personal: list[LibraryItemPayload] = Field(default_factory=list)
    shared: list[LibraryItemPayload] = Field(default_factory=list)

    def to_snapshot(self) -> LibrarySnapshot:
        return LibrarySnapshot(
            personal=tuple(i.to_item(LibraryScope.PERSONAL) for i in self.personal),
            shared=tuple(i.to_item(LibraryScope.SHARED) for i in self.shared),
        )


class SaveLibraryItemResponse(BaseModel):
    success: bool
    itemId: int = 0
    message: str = ""
