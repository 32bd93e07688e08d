"""
@file: folders.py
@description:
Pydantic schemas for folder requests and responses.

Schemas:
- FolderOut: a folder row as returned by the API, tagged with type "folder"
- FolderCreate: body of POST /api/folders
- FolderRename: body of PUT /api/folders/{id}
- FolderResponse / FolderListResponse: response wrappers

@notes:
- The frontend sends camelCase keys (parentId); both spellings are accepted.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FolderOut(BaseModel):
    """A folder as shown in file listings."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    type: Literal["folder"] = "folder"
    parent_id: Optional[str] = None
    path: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FolderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Folder name; surrounding whitespace is stripped.")
    parent_id: Optional[str] = Field(None, alias="parentId", description="Parent folder, root when null.")


class FolderRename(BaseModel):
    name: str = Field(..., description="New folder name.")


class FolderResponse(BaseModel):
    success: bool = True
    folder: FolderOut


class FolderListResponse(BaseModel):
    folders: List[FolderOut]
