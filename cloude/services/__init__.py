"""
Services Package for the Cloude Backend.

This package holds all calls to the managed backend (Supabase), including:
- Auth (sign-up, sign-in)
- File uploads, listings, renames, moves, deletes and download URLs
- Folder hierarchy management
- Profiles and storage quota accounting
"""
