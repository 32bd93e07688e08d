"""
Schemas Package for the Cloude Backend.

This package contains Pydantic models used for:
- Request validation (rename, move, folder creation, registration)
- Response serialization (file listings, storage usage, profiles)
"""
