"""
@file: auth.py
@description:
Authentication endpoints for the Cloude API. Accounts live in Supabase Auth;
these routes proxy sign-up and sign-in and expose the current user.

Routes:
- POST /api/auth/register: Create an account and its profile
- POST /api/auth/login: OAuth2 password flow (username = email), returns an access token
- GET  /api/auth/me: The authenticated user and their profile

@dependencies:
- fastapi: For API routing and the OAuth2 password form
- cloude.services.auth_service: For Supabase Auth calls
- cloude.core.auth: For the current-user dependency and Token schema
"""

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from supabase import Client, SupabaseException

from cloude.core.auth import AuthenticatedUser, Token, get_current_user
from cloude.core.exceptions import raise_for_service_error
from cloude.core.logger import setup_logger
from cloude.db.supabase_client import get_supabase, get_supabase_admin
from cloude.schemas.users import MeResponse, RegisterRequest, RegisterResponse
from cloude.services import auth_service, profile_service

# Create a component-specific logger
logger = setup_logger("cloude.api.auth")

# Create a router instance
router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED, tags=["Authentication"])
def register_user(
    body: RegisterRequest,
    auth_client: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_supabase_admin),
) -> RegisterResponse:
    """
    Register a new user.

    Raises:
        HTTPException(400): Supabase rejected the sign-up (e.g. email taken)
        HTTPException(500): Any other failure
    """
    try:
        result = auth_service.register_user(
            auth_client,
            admin_client,
            body.email,
            body.password,
            full_name=body.full_name,
        )
    except SupabaseException as e:
        raise_for_service_error(e, "Registration failed")

    message = "User registered successfully"
    if result["confirmation_pending"]:
        message = "User registered; confirm the email address before logging in"

    return RegisterResponse(status="success", message=message, user_id=result["user_id"])


@router.post("/login", response_model=Token, tags=["Authentication"])
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_client: Client = Depends(get_supabase),
) -> Token:
    """
    Authenticate a user and return a Supabase access token.

    This endpoint follows the OAuth2 password flow; `username` carries the email.

    Raises:
        HTTPException(401): Incorrect email or password
    """
    try:
        return auth_service.login_user(auth_client, form_data.username, form_data.password)
    except SupabaseException as e:
        raise_for_service_error(e, "Login failed")


@router.get("/me", response_model=MeResponse, tags=["Authentication"])
def read_current_user(
    current_user: AuthenticatedUser = Depends(get_current_user),
    admin_client: Client = Depends(get_supabase_admin),
) -> MeResponse:
    try:
        profile = profile_service.ensure_profile(admin_client, current_user.id)
    except SupabaseException as e:
        raise_for_service_error(e, "Failed to load profile")

    return MeResponse(user=current_user, profile=profile)
