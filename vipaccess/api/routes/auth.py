"""
Login endpoint.

Checks an email/password pair against the stored auth config and returns
the user without the password. Session handling is the frontend's
concern.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from ..dependencies import AuthRepositoryDep
from ..schemas import CamelModel, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(CamelModel):
    email: str
    password: str


class UserResponse(CamelModel):
    id: str
    email: str
    name: str
    role: str
    created_at: str
    last_login: Optional[str] = None


class LoginResponse(CamelModel):
    success: bool = True
    user: UserResponse


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Verify credentials",
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
async def login(request: LoginRequest, auth: AuthRepositoryDep) -> LoginResponse:
    user = await auth.verify_credentials(request.email, request.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    return LoginResponse(
        user=UserResponse(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role.value,
            created_at=user.created_at,
            last_login=user.last_login,
        )
    )
