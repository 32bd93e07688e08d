"""
@file: models.py
@description:
SQLAlchemy declarations of the three tables the API works with through
Supabase: `profiles`, `folders` and `files`.

@notes:
- Primary keys are UUIDs; `profiles.id` equals the Supabase Auth user id.
- Deletes are soft: `is_deleted` (and `deleted_at` for files) are set
  instead of removing rows.
- `folders.path` is the materialized path from the root, e.g. "/Docs/Invoices".
- `storage_used` is maintained by the API, not by a trigger.

@dependencies:
- SQLAlchemy: for the table declarations
- cloude.db.base: provides the Base class
"""

import uuid

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from cloude.db.base import Base

DEFAULT_STORAGE_LIMIT = 1000 * 1024 * 1024


class Profile(Base):
    """
    @class Profile
    @description
    Per-user profile and storage quota.

    @attributes:
        id (UUID): Supabase Auth user id.
        full_name (String): Optional display name.
        avatar_url (Text): Optional avatar image URL.
        storage_used (BigInteger): Bytes used by non-deleted files.
        storage_limit (BigInteger): Quota in bytes, 1000 MiB by default.
    """
    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, doc="Supabase Auth user id.")
    full_name = Column(String, nullable=True)
    avatar_url = Column(Text, nullable=True)
    storage_used = Column(BigInteger, nullable=False, default=0, server_default="0")
    storage_limit = Column(
        BigInteger,
        nullable=False,
        default=DEFAULT_STORAGE_LIMIT,
        server_default=str(DEFAULT_STORAGE_LIMIT),
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Folder(Base):
    """
    @class Folder
    @description
    A node of a user's folder tree. Root folders have no parent.
    """
    __tablename__ = "folders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    parent_id = Column(UUID(as_uuid=True), ForeignKey("folders.id"), nullable=True, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    path = Column(Text, nullable=False, doc="Materialized path, e.g. '/Docs/Invoices'.")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    is_deleted = Column(Boolean, nullable=False, default=False, server_default="false")


class StoredFile(Base):
    """
    @class StoredFile
    @description
    Metadata of an object in the storage bucket.

    @attributes:
        name (String): Display name, changed by rename.
        original_name (String): Name the file was uploaded with.
        size (BigInteger): Size in bytes.
        mime_type (String): Content type reported at upload.
        storage_path (Text): Object key, `{user_id}/{epoch_millis}-{name}`.
        folder_id (UUID): Containing folder, NULL for the root.
        deleted_at (DateTime): Set together with is_deleted.
    """
    __tablename__ = "files"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    original_name = Column(String, nullable=False)
    size = Column(BigInteger, nullable=False)
    mime_type = Column(String, nullable=False)
    storage_path = Column(Text, nullable=False, unique=True)
    folder_id = Column(UUID(as_uuid=True), ForeignKey("folders.id"), nullable=True, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    is_deleted = Column(Boolean, nullable=False, default=False, server_default="false")
    deleted_at = Column(DateTime(timezone=True), nullable=True)
