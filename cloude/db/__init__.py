"""
Database Package for the Cloude Backend.

This package handles access to the managed Postgres database, including:
- Supabase client factories used by the services
- SQLAlchemy declarations of the profiles, folders and files tables
- A bootstrap script that creates those tables on a fresh project
"""
