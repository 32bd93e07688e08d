"""
@file: files.py
@description:
API endpoints for the current user's files. Every route requires a bearer
token and forwards to `file_service` / `profile_service`, mapping service
errors to HTTP status codes.

Routes:
- POST   /api/files/upload               : upload a file (multipart: file, folderId)
- GET    /api/files?folderId=            : list a folder's sub-folders and files
- GET    /api/files/storage              : storage quota usage
- PUT    /api/files/{file_id}            : rename a file
- PUT    /api/files/{file_id}/move       : move a file to another folder
- DELETE /api/files/{file_id}            : soft-delete a file
- GET    /api/files/{file_id}/download   : signed download URL

@dependencies:
- FastAPI APIRouter for route definitions
- cloude.services.file_service for Supabase calls
- cloude.schemas.files for validation and serialization
- cloude.core.auth for authentication
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from supabase import Client, SupabaseException

from cloude.core.auth import AuthenticatedUser, get_current_user
from cloude.core.config import settings
from cloude.core.exceptions import raise_for_service_error
from cloude.core.logger import setup_logger
from cloude.db.supabase_client import get_supabase_admin
from cloude.schemas.files import (
    DownloadUrlResponse,
    FileListResponse,
    FileMove,
    FileRename,
    FileResponse,
    StorageUsage,
    SuccessResponse,
)
from cloude.services import file_service, profile_service

logger = setup_logger("cloude.api.files")

router = APIRouter()


@router.post("/upload", response_model=FileResponse, tags=["Files"])
def upload_file(
    file: Optional[UploadFile] = File(None),
    folder_id: Optional[str] = Form(None, alias="folderId"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> FileResponse:
    """
    POST /api/files/upload

    Stores the uploaded file under the user's prefix in the storage bucket and
    records its metadata.

    Raises:
        HTTPException(400): No file in the request
        HTTPException(404): folderId does not name one of the user's folders
        HTTPException(413): File larger than MAX_UPLOAD_SIZE, or quota exceeded
        HTTPException(500): Storage or database failure
    """
    logger.info(f"Upload request received from user {current_user.id}")

    if file is None or not file.filename:
        logger.warning("Upload rejected: no file provided")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    # Read one byte past the limit to detect oversized uploads without buffering them whole
    content = file.file.read(settings.MAX_UPLOAD_SIZE + 1)
    if len(content) > settings.MAX_UPLOAD_SIZE:
        logger.warning(f"Upload rejected: {file.filename} exceeds {settings.MAX_UPLOAD_SIZE} bytes")
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the upload limit of {settings.MAX_UPLOAD_SIZE} bytes",
        )

    try:
        stored = file_service.upload_file(
            client,
            current_user.id,
            file.filename,
            content,
            content_type=file.content_type,
            folder_id=folder_id or None,
        )
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to upload file")

    logger.info(f"File upload complete: {file.filename}")
    return FileResponse(success=True, file=stored)


@router.get("", response_model=FileListResponse, tags=["Files"])
def list_files(
    folder_id: Optional[str] = Query(None, alias="folderId"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> FileListResponse:
    """
    GET /api/files?folderId=

    Lists the sub-folders and files of a folder, or of the root when folderId
    is omitted. Folders come first, files are newest first.

    Example Response:
    {
      "files": [
        {"id": "...", "name": "Docs", "type": "folder", "parent_id": null},
        {"id": "...", "name": "a.pdf", "type": "file", "size": 1024, "url": "https://..."}
      ]
    }
    """
    try:
        items = file_service.list_folder_contents(client, current_user.id, folder_id or None)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to fetch files")

    return FileListResponse(files=items)


@router.get("/storage", response_model=StorageUsage, tags=["Files"])
def get_storage_usage(
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> StorageUsage:
    """
    GET /api/files/storage

    Returns used and total bytes for the storage widget.
    """
    try:
        return profile_service.get_storage_usage(client, current_user.id)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to fetch storage usage")


@router.put("/{file_id}", response_model=FileResponse, tags=["Files"])
def rename_file(
    file_id: str,
    body: FileRename,
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> FileResponse:
    """
    PUT /api/files/{file_id}

    Body: {"name": "new name"}. Blank names are rejected with 400.
    """
    logger.info(f"Rename request for file: {file_id}")
    try:
        renamed = file_service.rename_file(client, current_user.id, file_id, body.name)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to rename file")

    return FileResponse(success=True, file=renamed)


@router.put("/{file_id}/move", response_model=FileResponse, tags=["Files"])
def move_file(
    file_id: str,
    body: FileMove,
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> FileResponse:
    """
    PUT /api/files/{file_id}/move

    Body: {"folderId": "..."}; null moves the file to the root.
    """
    logger.info(f"Move request for file: {file_id}")
    try:
        moved = file_service.move_file(client, current_user.id, file_id, body.folder_id or None)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to move file")

    return FileResponse(success=True, file=moved)


@router.delete("/{file_id}", response_model=SuccessResponse, tags=["Files"])
def delete_file(
    file_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> SuccessResponse:
    """
    DELETE /api/files/{file_id}

    Marks the file as deleted; it no longer appears in listings or usage.
    """
    logger.info(f"Delete request for file: {file_id}")
    try:
        file_service.delete_file(client, current_user.id, file_id)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to delete file")

    return SuccessResponse(success=True)


@router.get("/{file_id}/download", response_model=DownloadUrlResponse, tags=["Files"])
def get_download_url(
    file_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> DownloadUrlResponse:
    """
    GET /api/files/{file_id}/download

    Returns a signed URL valid for SIGNED_URL_EXPIRES_IN seconds.
    """
    try:
        url = file_service.get_download_url(client, current_user.id, file_id)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to generate download URL")

    return DownloadUrlResponse(url=url, expires_in=settings.SIGNED_URL_EXPIRES_IN)
