"""
@file: folders.py
@description:
API endpoints for the current user's folder hierarchy.

Routes:
- POST   /api/folders                 : create a folder (body: name, parentId)
- GET    /api/folders?parentId=       : list folders under a parent
- PUT    /api/folders/{folder_id}     : rename a folder
- DELETE /api/folders/{folder_id}     : soft-delete a folder and its contents
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from supabase import Client, SupabaseException

from cloude.core.auth import AuthenticatedUser, get_current_user
from cloude.core.exceptions import raise_for_service_error
from cloude.core.logger import setup_logger
from cloude.db.supabase_client import get_supabase_admin
from cloude.schemas.folders import FolderCreate, FolderListResponse, FolderRename, FolderResponse
from cloude.services import folder_service

logger = setup_logger("cloude.api.folders")

router = APIRouter()


@router.post("", response_model=FolderResponse, status_code=status.HTTP_201_CREATED, tags=["Folders"])
def create_folder(
    body: FolderCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> FolderResponse:
    """
    POST /api/folders

    Example Request Body:
    {"name": "Invoices", "parentId": null}
    """
    try:
        folder = folder_service.create_folder(client, current_user.id, body.name, body.parent_id or None)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to create folder")

    return FolderResponse(success=True, folder=folder)


@router.get("", response_model=FolderListResponse, tags=["Folders"])
def list_folders(
    parent_id: Optional[str] = Query(None, alias="parentId"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> FolderListResponse:
    try:
        folders = folder_service.list_folders(client, current_user.id, parent_id or None)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to fetch folders")

    return FolderListResponse(folders=folders)


@router.put("/{folder_id}", response_model=FolderResponse, tags=["Folders"])
def rename_folder(
    folder_id: str,
    body: FolderRename,
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> FolderResponse:
    try:
        folder = folder_service.rename_folder(client, current_user.id, folder_id, body.name)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to rename folder")

    return FolderResponse(success=True, folder=folder)


@router.delete("/{folder_id}", tags=["Folders"])
def delete_folder(
    folder_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    client: Client = Depends(get_supabase_admin),
) -> dict:
    """
    DELETE /api/folders/{folder_id}

    Soft-deletes the folder, its sub-folders and their files.

    Example Response:
    {"success": true, "deleted": {"folders": 3, "files": 12}}
    """
    logger.info(f"Delete request for folder: {folder_id}")
    try:
        counts = folder_service.delete_folder(client, current_user.id, folder_id)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to delete folder")

    return {"success": True, "deleted": counts}
