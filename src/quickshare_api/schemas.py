####################################
# --- Request/response schemas --- #
####################################

from datetime import datetime
from typing import Any, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
)

from quickshare_api.utils import markup


class StoredFile(BaseModel):
    """A file held by the object store."""
    name: str = Field(
        description="Server-assigned object name, relative to the upload prefix.",
        json_schema_extra={"example": "1718000000000-report.pdf"},
    )
    path: str = Field(
        description="Full object key.",
        json_schema_extra={"example": "user-uploads/1718000000000-report.pdf"},
    )
    public_url: str = Field(description="Unauthenticated link to the file.")
    size: int = Field(description="Size of the file in bytes.")
    mime_type: Optional[str] = Field(None, description="Declared content type.")
    created_at: datetime = Field(description="When the file was stored.")


class FilePage(BaseModel):
    """Response model for `GET /api/files`."""
    files: List[StoredFile]
    page: int
    page_size: int
    total_count: int
    total_pages: int

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "files": [
                    {
                        "name": "1718000000000-report.pdf",
                        "path": "user-uploads/1718000000000-report.pdf",
                        "public_url": "https://quickshare-uploads.s3.us-east-1.amazonaws.com/user-uploads/1718000000000-report.pdf",
                        "size": 512,
                        "mime_type": "application/pdf",
                        "created_at": "2024-06-10T06:13:20Z",
                    }
                ],
                "page": 1,
                "page_size": 12,
                "total_count": 1,
                "total_pages": 1,
            }
        }
    )


class UploadedFile(BaseModel):
    """One stored upload, in the shape the browser client reads."""
    file_name: str = Field(alias="fileName", description="Name of the file as uploaded.")
    file_path: str = Field(alias="filePath", description="Object key it was stored under.")
    public_url: str = Field(alias="publicUrl")
    size: int
    mimetype: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class UploadResponse(UploadedFile):
    """Response model for `POST /api/upload`."""
    success: bool = True

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "success": True,
                "fileName": "report.pdf",
                "filePath": "user-uploads/1718000000000-report.pdf",
                "publicUrl": "https://quickshare-uploads.s3.us-east-1.amazonaws.com/user-uploads/1718000000000-report.pdf",
                "size": 512,
                "mimetype": "application/pdf",
            }
        },
    )


class BatchUploadResponse(BaseModel):
    """Response model for `POST /api/uploads`."""
    success: bool = True
    summary: str = Field(description='Progress summary, e.g. "3 of 3 complete".')
    files: List[UploadedFile]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None


class DeleteFileResponse(BaseModel):
    """Response model for `DELETE /api/files/:name`."""
    success: bool = True
    name: str


class PostIn(BaseModel):
    """Body of `POST /api/posts` and `PUT /api/posts/:id`."""
    title: str = ""
    content: str = Field("", description="Rich-text markup.")


class TextPost(BaseModel):
    """A text post row."""
    id: str
    title: str
    content: Optional[str] = ""
    created_at: datetime
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def edited(self) -> bool:
        return self.updated_at is not None and self.updated_at != self.created_at

    @computed_field
    @property
    def word_count(self) -> int:
        return markup.word_count(self.content)

    model_config = ConfigDict(
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "id": "3f1c2a9b6d3e4f5a8b7c6d5e4f3a2b1c",
                "title": "Release notes",
                "content": "<p>Hello <b>World</b></p>",
                "created_at": "2024-06-10T06:13:20Z",
                "updated_at": None,
                "edited": False,
                "word_count": 2,
            }
        },
    )


class DeletePostResponse(BaseModel):
    success: bool = True
    id: str
