"""
@file: files.py
@description:
Pydantic schemas for request validation and response serialization
of stored files.

Schemas:
- FileOut: a file row as returned by the API, tagged with type "file"
- FileListResponse: folder contents under a top-level "files" key, folders
  first, then files
- FileResponse: single file wrapped with a success flag
- FileRename / FileMove: request bodies
- DownloadUrlResponse: signed download URL
- StorageUsage: quota usage of the current user

@notes:
- Listing responses mirror what the frontend expects:
  {
    "files": [
      {"id": "...", "name": "Docs", "type": "folder", "parent_id": null, ...},
      {"id": "...", "name": "a.pdf", "type": "file", "size": 1024, "url": "...", ...}
    ]
  }
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from cloude.schemas.folders import FolderOut


class FileOut(BaseModel):
    """A stored file as shown in file listings."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    type: Literal["file"] = "file"
    original_name: Optional[str] = None
    size: int = 0
    mime_type: Optional[str] = None
    storage_path: Optional[str] = None
    folder_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_deleted: bool = False
    url: Optional[str] = Field(None, description="Public URL of the stored object.")


FolderItem = Annotated[Union[FolderOut, FileOut], Field(discriminator="type")]


class FileListResponse(BaseModel):
    files: List[FolderItem]


class FileResponse(BaseModel):
    success: bool = True
    file: FileOut


class SuccessResponse(BaseModel):
    success: bool = True


class FileRename(BaseModel):
    name: str = Field(..., description="New display name; surrounding whitespace is stripped.")


class FileMove(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    folder_id: Optional[str] = Field(..., alias="folderId", description="Target folder; an explicit null moves to the root.")


class DownloadUrlResponse(BaseModel):
    url: str
    expires_in: int


class StorageUsage(BaseModel):
    used: int = Field(..., description="Bytes used by non-deleted files.")
    total: int = Field(..., description="Storage quota in bytes.")
    available: int
    percentage: float = Field(..., ge=0.0, description="Share of the quota in use, 0-100.")
