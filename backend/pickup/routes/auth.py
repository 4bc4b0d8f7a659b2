"""
Auth API Routes
Sign-in through a credential strategy and inspect the current session.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from pickup.auth import (
    AuthError,
    AuthenticatedUser,
    SignInRequest,
    create_session_token,
    enabled_strategies,
    get_current_user,
    sign_in,
)
from pickup.database import get_session

router = APIRouter()


class ProviderResponse(BaseModel):
    id: str
    name: str


class SignInResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AuthenticatedUser


@router.get("/auth/providers", response_model=List[ProviderResponse])
def list_providers():
    """Enabled sign-in providers"""
    return [ProviderResponse(id=s.id, name=s.name) for s in enabled_strategies()]


@router.post("/auth/signin", response_model=SignInResponse)
def signin(request: SignInRequest, session: Session = Depends(get_session)):
    """Sign in (or register) and receive a bearer token"""
    try:
        user = sign_in(session, request)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return SignInResponse(
        access_token=create_session_token(user),
        user=AuthenticatedUser(id=user.id, email=user.email, name=user.name),
    )


@router.get("/auth/session", response_model=AuthenticatedUser)
def get_auth_session(user: AuthenticatedUser = Depends(get_current_user)):
    """The identity carried by the bearer token"""
    return user
