"""
@file: test_services.py
@description:
Unit tests for the service layer, called directly against the in-memory
Supabase fake: storage paths, profile bookkeeping, folder trees, auth calls
and the mapping of service errors to HTTP responses.

@dependencies:
- pytest: For test framework
- cloude.services: Modules being tested
"""

import pytest
from fastapi import HTTPException
from supabase import SupabaseException

from cloude.core.config import settings
from cloude.core.exceptions import (
    AuthenticationError,
    ConflictError,
    QuotaExceededError,
    ResourceNotFoundError,
    ValidationFailedError,
    raise_for_service_error,
)
from cloude.services import auth_service, file_service, folder_service, profile_service

USER_ID = "9b2d6c1e-1111-4000-8000-000000000001"


# Storage paths

def test_build_storage_path():
    assert file_service.build_storage_path(USER_ID, "report.pdf", 1700000000000) == f"{USER_ID}/1700000000000-report.pdf"


@pytest.mark.parametrize("filename", ["../../report.pdf", "a/b/report.pdf", "C:\\Users\\me\\report.pdf"])
def test_build_storage_path_strips_directories(filename):
    assert file_service.build_storage_path(USER_ID, filename, 1) == f"{USER_ID}/1-report.pdf"


def test_build_storage_path_uses_current_time():
    storage_path = file_service.build_storage_path(USER_ID, "a.txt")

    prefix, name = storage_path.split("/")
    timestamp, basename = name.split("-", 1)
    assert prefix == USER_ID
    assert len(timestamp) == 13
    assert basename == "a.txt"


# Profiles and quota

def test_ensure_profile_creates_once(fake_supabase):
    first = profile_service.ensure_profile(fake_supabase, USER_ID, full_name="Ada")
    second = profile_service.ensure_profile(fake_supabase, USER_ID, full_name="Someone Else")

    assert first["id"] == second["id"] == USER_ID
    assert second["full_name"] == "Ada"
    assert len(fake_supabase.rows("profiles")) == 1


def test_ensure_profile_wraps_backend_errors(fake_supabase):
    fake_supabase.fail_on("profiles", "select")

    with pytest.raises(SupabaseException) as exc_info:
        profile_service.ensure_profile(fake_supabase, USER_ID)

    assert "Failed to load user profile" in exc_info.value.message


def test_update_profile_ignores_none(fake_supabase):
    profile_service.ensure_profile(fake_supabase, USER_ID, full_name="Ada")

    updated = profile_service.update_profile(
        fake_supabase, USER_ID, {"full_name": None, "avatar_url": "https://img.example.com/a.png"}
    )

    assert updated["full_name"] == "Ada"
    assert updated["avatar_url"] == "https://img.example.com/a.png"


def test_recalculate_storage_used_counts_live_files_only(fake_supabase):
    profile_service.ensure_profile(fake_supabase, USER_ID)
    fake_supabase.add_row("files", {"user_id": USER_ID, "size": 100})
    fake_supabase.add_row("files", {"user_id": USER_ID, "size": 50, "is_deleted": True})
    fake_supabase.add_row("files", {"user_id": "someone-else", "size": 1000})

    total = profile_service.recalculate_storage_used(fake_supabase, USER_ID)

    assert total == 100
    assert fake_supabase.rows("profiles")[0]["storage_used"] == 100


def test_refresh_storage_used_swallows_failures(fake_supabase):
    fake_supabase.fail_on("files", "select")

    profile_service.refresh_storage_used(fake_supabase, USER_ID)

    assert ("files", "select") in fake_supabase.calls


def test_storage_usage_percentage(fake_supabase):
    fake_supabase.add_row("profiles", {"id": USER_ID, "storage_used": 1, "storage_limit": 3})

    usage = profile_service.get_storage_usage(fake_supabase, USER_ID)

    assert usage.used == 1
    assert usage.total == 3
    assert usage.available == 2
    assert usage.percentage == 33.33


def test_storage_usage_never_negative(fake_supabase):
    fake_supabase.add_row("profiles", {"id": USER_ID, "storage_used": 15, "storage_limit": 10})

    usage = profile_service.get_storage_usage(fake_supabase, USER_ID)

    assert usage.available == 0
    assert usage.percentage == 150.0


def test_check_quota(fake_supabase):
    fake_supabase.add_row("profiles", {"id": USER_ID, "storage_used": 90, "storage_limit": 100})

    profile_service.check_quota(fake_supabase, USER_ID, 10)
    with pytest.raises(QuotaExceededError):
        profile_service.check_quota(fake_supabase, USER_ID, 11)


# Files

def test_upload_file_defaults_mime_type(fake_supabase):
    stored = file_service.upload_file(fake_supabase, USER_ID, "blob", b"\x00\x01")

    assert stored["mime_type"] == "application/octet-stream"
    options = fake_supabase.objects[settings.STORAGE_BUCKET][stored["storage_path"]]["options"]
    assert options["upsert"] == "false"


def test_upload_file_rejects_blank_name(fake_supabase):
    with pytest.raises(ValidationFailedError):
        file_service.upload_file(fake_supabase, USER_ID, "   ", b"data")


def test_get_download_url_is_signed(fake_supabase, monkeypatch):
    monkeypatch.setattr(settings, "SIGNED_URL_EXPIRES_IN", 120)
    stored = file_service.upload_file(fake_supabase, USER_ID, "a.txt", b"data", "text/plain")

    url = file_service.get_download_url(fake_supabase, USER_ID, stored["id"])

    assert "/object/sign/" in url
    assert "expires=120" in url


def test_list_folder_contents_tags_items(fake_supabase):
    folder = folder_service.create_folder(fake_supabase, USER_ID, "Docs")
    file_service.upload_file(fake_supabase, USER_ID, "a.txt", b"data", "text/plain")

    items = file_service.list_folder_contents(fake_supabase, USER_ID)

    assert [item["type"] for item in items] == ["folder", "file"]
    assert items[0]["id"] == folder["id"]
    assert items[1]["url"].startswith("https://test.supabase.co/storage/v1/object/public/")


# Folders

def test_get_descendants_walks_whole_tree(fake_supabase):
    root = folder_service.create_folder(fake_supabase, USER_ID, "root")
    a = folder_service.create_folder(fake_supabase, USER_ID, "a", parent_id=root["id"])
    b = folder_service.create_folder(fake_supabase, USER_ID, "b", parent_id=root["id"])
    a1 = folder_service.create_folder(fake_supabase, USER_ID, "a1", parent_id=a["id"])
    folder_service.create_folder(fake_supabase, USER_ID, "other")

    descendants = folder_service.get_descendants(fake_supabase, USER_ID, root["id"])

    assert [row["id"] for row in descendants] == [a["id"], b["id"], a1["id"]]


def test_folder_names_with_wildcards_do_not_leak(fake_supabase):
    """A folder named with LIKE wildcards must not match its siblings' subtrees."""
    wild = folder_service.create_folder(fake_supabase, USER_ID, "a_")
    sibling = folder_service.create_folder(fake_supabase, USER_ID, "ab")
    folder_service.create_folder(fake_supabase, USER_ID, "child", parent_id=sibling["id"])

    counts = folder_service.delete_folder(fake_supabase, USER_ID, wild["id"])

    assert counts == {"folders": 1, "files": 0}
    remaining = folder_service.list_folders(fake_supabase, USER_ID)
    assert [row["name"] for row in remaining] == ["ab"]


def test_create_folder_conflict(fake_supabase):
    folder_service.create_folder(fake_supabase, USER_ID, "Docs")

    with pytest.raises(ConflictError):
        folder_service.create_folder(fake_supabase, USER_ID, "Docs")


def test_deleted_folder_name_can_be_reused(fake_supabase):
    docs = folder_service.create_folder(fake_supabase, USER_ID, "Docs")
    folder_service.delete_folder(fake_supabase, USER_ID, docs["id"])

    recreated = folder_service.create_folder(fake_supabase, USER_ID, "Docs")

    assert recreated["id"] != docs["id"]


def test_delete_folder_leaves_files_when_folder_update_fails(fake_supabase):
    docs = folder_service.create_folder(fake_supabase, USER_ID, "Docs")
    file_service.upload_file(fake_supabase, USER_ID, "a.txt", b"abc", "text/plain", folder_id=docs["id"])
    fake_supabase.fail_on("folders", "update")

    with pytest.raises(SupabaseException):
        folder_service.delete_folder(fake_supabase, USER_ID, docs["id"])

    assert fake_supabase.rows("folders")[0]["is_deleted"] is False
    assert fake_supabase.rows("files")[0]["is_deleted"] is False
    assert fake_supabase.rows("profiles")[0]["storage_used"] == 3


def test_delete_folder_recounts_usage_when_file_update_fails(fake_supabase):
    docs = folder_service.create_folder(fake_supabase, USER_ID, "Docs")
    file_service.upload_file(fake_supabase, USER_ID, "a.txt", b"abc", "text/plain", folder_id=docs["id"])
    fake_supabase.fail_on("files", "update")
    fake_supabase.calls.clear()

    with pytest.raises(SupabaseException):
        folder_service.delete_folder(fake_supabase, USER_ID, docs["id"])

    failed_at = fake_supabase.calls.index(("files", "update"))
    assert ("files", "select") in fake_supabase.calls[failed_at:]
    assert ("profiles", "update") in fake_supabase.calls[failed_at:]


def test_rename_folder_reads_tree_before_writing(fake_supabase, monkeypatch):
    docs = folder_service.create_folder(fake_supabase, USER_ID, "Docs")
    folder_service.create_folder(fake_supabase, USER_ID, "Invoices", parent_id=docs["id"])

    def unavailable(client, user_id):
        raise SupabaseException("Failed to fetch folders: timeout")

    monkeypatch.setattr(folder_service, "_all_folders", unavailable)

    with pytest.raises(SupabaseException):
        folder_service.rename_folder(fake_supabase, USER_ID, docs["id"], "Papers")

    assert sorted(row["path"] for row in fake_supabase.rows("folders")) == ["/Docs", "/Docs/Invoices"]


def test_get_folder_not_found(fake_supabase):
    with pytest.raises(ResourceNotFoundError):
        folder_service.get_folder(fake_supabase, USER_ID, "missing")


# Auth

def test_register_user_reports_pending_confirmation(fake_supabase, monkeypatch):
    original_sign_up = fake_supabase.auth.sign_up

    def sign_up_without_session(credentials):
        response = original_sign_up(credentials)
        response.session = None
        return response

    monkeypatch.setattr(fake_supabase.auth, "sign_up", sign_up_without_session)

    result = auth_service.register_user(fake_supabase, fake_supabase, "new@example.com", "password123")

    assert result["confirmation_pending"] is True
    assert fake_supabase.rows("profiles")[0]["id"] == result["user_id"]


def test_login_user_rejects_bad_password(fake_supabase):
    fake_supabase.auth.add_user("user@example.com", password="right-password")

    with pytest.raises(AuthenticationError):
        auth_service.login_user(fake_supabase, "user@example.com", "wrong-password")


# Error mapping

@pytest.mark.parametrize(
    "error, status_code",
    [
        (ValidationFailedError("Name is required"), 400),
        (AuthenticationError("Incorrect email or password"), 401),
        (ResourceNotFoundError("File not found"), 404),
        (ConflictError("A folder with this name already exists"), 409),
        (QuotaExceededError("Storage quota exceeded"), 413),
    ],
)
def test_raise_for_service_error_keeps_message(error, status_code):
    with pytest.raises(HTTPException) as exc_info:
        raise_for_service_error(error, "Failed to do the thing")

    assert exc_info.value.status_code == status_code
    assert exc_info.value.detail == error.message


def test_raise_for_service_error_adds_auth_header():
    with pytest.raises(HTTPException) as exc_info:
        raise_for_service_error(AuthenticationError("Invalid token"), "unused")

    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


def test_raise_for_service_error_hides_backend_details():
    with pytest.raises(HTTPException) as exc_info:
        raise_for_service_error(SupabaseException("connection reset by peer"), "Failed to fetch files")

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "Failed to fetch files"
