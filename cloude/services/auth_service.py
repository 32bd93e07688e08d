"""
@file: auth_service.py
@description:
Sign-up and sign-in through Supabase Auth.

The frontend can talk to Supabase Auth directly; these functions let API
clients (scripts, the Python client, tests) obtain tokens from the backend
instead.

@dependencies:
- supabase: Client and auth errors
- cloude.services.profile_service: Profile creation after sign-up
- cloude.core.logger: For logging
"""

from typing import Any, Dict, Optional

from supabase import AuthError, Client, SupabaseException

from cloude.core.auth import Token
from cloude.core.exceptions import AuthenticationError, ValidationFailedError
from cloude.core.logger import setup_logger
from cloude.services.profile_service import ensure_profile

# Initialize logger
logger = setup_logger("cloude.services.auth_service")


def register_user(
    auth_client: Client,
    admin_client: Client,
    email: str,
    password: str,
    full_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a Supabase Auth user and its profile row.

    Args:
        auth_client: Anon-key client used for the sign-up call
        admin_client: Service-role client used to create the profile
        email: Login email
        password: Login password
        full_name: Optional display name stored in user metadata and profile

    Returns:
        Dict[str, Any]: `user_id` and whether email confirmation is pending

    Raises:
        ValidationFailedError: If Supabase rejects the sign-up (duplicate
            email, weak password, ...)
        SupabaseException: On any other failure
    """
    try:
        response = auth_client.auth.sign_up({
            "email": email,
            "password": password,
            "options": {"data": {"full_name": full_name}},
        })
    except AuthError as e:
        logger.warning(f"Sign-up rejected for {email}: {str(e)}")
        raise ValidationFailedError(str(e))
    except Exception as e:
        logger.error(f"Sign-up failed for {email}: {str(e)}")
        raise SupabaseException(f"Registration failed: {str(e)}")

    user = response.user
    if user is None:
        raise SupabaseException("Registration failed: no user returned")

    ensure_profile(admin_client, str(user.id), full_name=full_name)
    logger.info(f"New user registered: {user.id}")

    return {
        "user_id": str(user.id),
        "confirmation_pending": response.session is None,
    }


def login_user(auth_client: Client, email: str, password: str) -> Token:
    """
    Exchange email and password for a Supabase access token.

    Raises:
        AuthenticationError: If the credentials are rejected
        SupabaseException: On any other failure
    """
    try:
        response = auth_client.auth.sign_in_with_password({"email": email, "password": password})
    except AuthError as e:
        logger.warning(f"Login rejected for {email}: {str(e)}")
        raise AuthenticationError("Incorrect email or password")
    except Exception as e:
        logger.error(f"Login failed for {email}: {str(e)}")
        raise SupabaseException(f"Login failed: {str(e)}")

    session = response.session
    if session is None:
        raise AuthenticationError("Incorrect email or password")

    logger.info(f"User {response.user.id if response.user else email} logged in successfully")
    return Token(
        access_token=session.access_token,
        token_type="bearer",
        expires_at=session.expires_at,
    )
