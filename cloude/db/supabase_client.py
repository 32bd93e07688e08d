"""
@file: supabase_client.py
@description:
Factories for the two Supabase clients the API talks through:

- `get_supabase()`: anon-key client, used for user sign-in and sign-up. A new
  client is built per request because signing in stores the user's session
  on the client instance.
- `get_supabase_admin()`: service-role client, used for table, storage and
  token validation calls. It bypasses row level security, so every query
  made with it must be scoped by user_id. Cached for the process lifetime.

Both double as FastAPI dependencies, which lets the test suite swap them
through `app.dependency_overrides`.

@dependencies:
- supabase: Official Python SDK (create_client, ClientOptions)
- cloude.core.config: Project URL and keys
"""

from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from cloude.core.config import settings
from cloude.core.logger import setup_logger

logger = setup_logger("cloude.db.supabase_client")


def _server_options() -> ClientOptions:
    # The server never keeps a session of its own
    return ClientOptions(auto_refresh_token=False, persist_session=False)


def get_supabase() -> Client:
    """
    Return a fresh anon-key Supabase client.
    """
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY, options=_server_options())


@lru_cache()
def get_supabase_admin() -> Client:
    """
    Return the shared service-role Supabase client.
    """
    logger.info(f"Creating service-role Supabase client for {settings.SUPABASE_URL}")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        options=_server_options(),
    )
