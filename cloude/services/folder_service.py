"""
@file: folder_service.py
@description:
Service functions for the folder hierarchy stored in the Supabase `folders`
table.

Key features:
- Create, list, rename and soft-delete folders
- Materialized `path` column ("/Docs/Invoices") kept in sync on rename
- Recursive soft delete of sub-folders and the files inside them

@dependencies:
- supabase: Client and SupabaseException
- cloude.core.exceptions: Not-found, conflict and validation errors
- cloude.core.logger: For logging

@notes:
- Every query is scoped by user_id; a folder owned by someone else is
  reported as not found.
- The hierarchy is walked in Python from a single fetch of the user's
  folders, which keeps names containing LIKE wildcards safe.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client, SupabaseException

from cloude.core.exceptions import (
    ConflictError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from cloude.core.logger import setup_logger
from cloude.services.profile_service import refresh_storage_used

# Initialize logger
logger = setup_logger("cloude.services.folder_service")

FOLDERS_TABLE = "folders"
FILES_TABLE = "files"


def _tag(row: Dict[str, Any]) -> Dict[str, Any]:
    return {**row, "type": "folder"}


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationFailedError("Name is required")
    if "/" in cleaned:
        raise ValidationFailedError("Folder name cannot contain '/'")
    return cleaned


def _child_path(parent: Optional[Dict[str, Any]], name: str) -> str:
    parent_path = parent["path"].rstrip("/") if parent else ""
    return f"{parent_path}/{name}"


def get_folder(client: Client, user_id: str, folder_id: str) -> Dict[str, Any]:
    """
    Fetch a non-deleted folder owned by the user.

    Raises:
        ResourceNotFoundError: If the folder does not exist, is deleted or is
            owned by someone else
        SupabaseException: If the query fails
    """
    try:
        response = (
            client.table(FOLDERS_TABLE)
            .select("*")
            .eq("id", folder_id)
            .eq("user_id", user_id)
            .eq("is_deleted", False)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to fetch folder {folder_id}: {str(e)}")
        raise SupabaseException(f"Failed to fetch folder: {str(e)}")

    if not response.data:
        raise ResourceNotFoundError("Folder not found")
    return response.data[0]


def list_folders(client: Client, user_id: str, parent_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    List the folders directly under `parent_id` (the root when None), by name.

    Returns:
        List[Dict[str, Any]]: Folder rows tagged with type "folder"

    Raises:
        SupabaseException: If the query fails
    """
    logger.info(f"Fetching folders for user {user_id}, parent {parent_id or 'root'}")
    try:
        query = (
            client.table(FOLDERS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("is_deleted", False)
        )
        if parent_id:
            query = query.eq("parent_id", parent_id)
        else:
            query = query.is_("parent_id", "null")

        response = query.order("name").execute()
    except Exception as e:
        logger.error(f"Failed to list folders for user {user_id}: {str(e)}")
        raise SupabaseException(f"Failed to fetch folders: {str(e)}")

    return [_tag(row) for row in response.data or []]


def _ensure_unique_name(
    client: Client,
    user_id: str,
    parent_id: Optional[str],
    name: str,
    exclude_id: Optional[str] = None,
) -> None:
    siblings = list_folders(client, user_id, parent_id)
    for sibling in siblings:
        if sibling["name"] == name and sibling["id"] != exclude_id:
            raise ConflictError(f"A folder named '{name}' already exists here")


def create_folder(
    client: Client,
    user_id: str,
    name: str,
    parent_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a folder under `parent_id` (the root when None).

    Args:
        client: Service-role Supabase client
        user_id: Folder owner
        name: Folder name; surrounding whitespace is stripped
        parent_id: Parent folder id

    Returns:
        Dict[str, Any]: The created folder tagged with type "folder"

    Raises:
        ValidationFailedError: If the name is blank or contains "/"
        ResourceNotFoundError: If the parent folder does not exist
        ConflictError: If a sibling folder already has that name
        SupabaseException: If the insertion fails
    """
    cleaned = _clean_name(name)
    parent = get_folder(client, user_id, parent_id) if parent_id else None
    _ensure_unique_name(client, user_id, parent_id, cleaned)

    record = {
        "name": cleaned,
        "parent_id": parent_id,
        "user_id": user_id,
        "path": _child_path(parent, cleaned),
    }

    try:
        response = client.table(FOLDERS_TABLE).insert(record).execute()
    except Exception as e:
        logger.error(f"Failed to create folder {record['path']}: {str(e)}")
        raise SupabaseException(f"Failed to create folder: {str(e)}")

    if not response.data:
        raise SupabaseException("Failed to create folder: insertion returned no data")

    folder = response.data[0]
    logger.info(f"Created folder {folder['id']} at {folder['path']} for user {user_id}")
    return _tag(folder)


def _all_folders(client: Client, user_id: str) -> List[Dict[str, Any]]:
    try:
        response = (
            client.table(FOLDERS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("is_deleted", False)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to load folder tree for user {user_id}: {str(e)}")
        raise SupabaseException(f"Failed to fetch folders: {str(e)}")
    return response.data or []


def get_descendants(client: Client, user_id: str, folder_id: str) -> List[Dict[str, Any]]:
    """
    Return every non-deleted folder below `folder_id`, parents before children.
    """
    children_by_parent: Dict[Optional[str], List[Dict[str, Any]]] = {}
    for row in _all_folders(client, user_id):
        children_by_parent.setdefault(row.get("parent_id"), []).append(row)

    descendants: List[Dict[str, Any]] = []
    pending = [folder_id]
    while pending:
        current = pending.pop(0)
        for child in children_by_parent.get(current, []):
            descendants.append(child)
            pending.append(child["id"])
    return descendants


def rename_folder(client: Client, user_id: str, folder_id: str, name: str) -> Dict[str, Any]:
    """
    Rename a folder and rewrite the paths of the folder and its descendants.

    Raises:
        ValidationFailedError: If the name is blank or contains "/"
        ResourceNotFoundError: If the folder does not exist
        ConflictError: If a sibling folder already has that name
        SupabaseException: If an update fails
    """
    cleaned = _clean_name(name)
    folder = get_folder(client, user_id, folder_id)
    if folder["name"] == cleaned:
        return _tag(folder)

    _ensure_unique_name(client, user_id, folder.get("parent_id"), cleaned, exclude_id=folder_id)

    old_path = folder["path"]
    parent_path = old_path.rsplit("/", 1)[0]
    new_path = f"{parent_path}/{cleaned}"
    # Read the subtree before the first write
    descendants = get_descendants(client, user_id, folder_id)

    try:
        response = (
            client.table(FOLDERS_TABLE)
            .update({"name": cleaned, "path": new_path})
            .eq("id", folder_id)
            .eq("user_id", user_id)
            .execute()
        )
        for child in descendants:
            child_path = new_path + child["path"][len(old_path):]
            client.table(FOLDERS_TABLE).update({"path": child_path}).eq("id", child["id"]).eq(
                "user_id", user_id
            ).execute()
    except Exception as e:
        logger.error(f"Failed to rename folder {folder_id}: {str(e)}")
        raise SupabaseException(f"Failed to rename folder: {str(e)}")

    if not response.data:
        raise ResourceNotFoundError("Folder not found")

    logger.info(f"Folder renamed: {old_path} -> {new_path}")
    return _tag(response.data[0])


def delete_folder(client: Client, user_id: str, folder_id: str) -> Dict[str, int]:
    """
    Soft-delete a folder, its sub-folders and every file inside them.

    Returns:
        Dict[str, int]: Number of folders and files marked as deleted

    Raises:
        ResourceNotFoundError: If the folder does not exist
        SupabaseException: If an update fails
    """
    get_folder(client, user_id, folder_id)
    folder_ids = [folder_id] + [row["id"] for row in get_descendants(client, user_id, folder_id)]
    deleted_at = datetime.now(timezone.utc).isoformat()

    # Folders first: a failure here leaves the whole subtree untouched
    files_touched = False
    try:
        client.table(FOLDERS_TABLE).update({"is_deleted": True}).in_("id", folder_ids).eq(
            "user_id", user_id
        ).execute()
        files_touched = True
        files = (
            client.table(FILES_TABLE)
            .update({"is_deleted": True, "deleted_at": deleted_at})
            .in_("folder_id", folder_ids)
            .eq("user_id", user_id)
            .eq("is_deleted", False)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to delete folder {folder_id}: {str(e)}")
        raise SupabaseException(f"Failed to delete folder: {str(e)}")
    finally:
        if files_touched:
            refresh_storage_used(client, user_id)

    file_count = len(files.data or [])
    logger.info(f"Folder {folder_id} deleted with {len(folder_ids) - 1} sub-folders and {file_count} files")

    return {"folders": len(folder_ids), "files": file_count}
