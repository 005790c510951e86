"""Session-cookie authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.errors import UnauthorizedError
from app.application.use_cases.auth import AuthService
from app.infrastructure.api.dependencies import SESSION_USER_KEY, get_auth_service
from app.infrastructure.api.schemas import AuthOut, LoginIn, PublicUserOut, RegisterIn

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201, response_model=AuthOut)
async def register(
    body: RegisterIn,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_session),
):
    user = await auth.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
    )
    await session.commit()
    request.session[SESSION_USER_KEY] = user.id
    return AuthOut(user=PublicUserOut.from_domain(user.public()), message="Registration successful")


@router.post("/login", response_model=AuthOut)
async def login(
    body: LoginIn,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
):
    user = await auth.login(body.email, body.password)
    request.session[SESSION_USER_KEY] = user.id
    return AuthOut(user=PublicUserOut.from_domain(user.public()), message="Login successful")


@router.post("/logout")
async def logout(request: Request):
    request.session.clear()
    return {"message": "Logout successful"}


@router.get("/user", response_model=PublicUserOut)
async def current_user(request: Request, auth: AuthService = Depends(get_auth_service)):
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise UnauthorizedError("Not authenticated")
    user = await auth.me(user_id)
    return PublicUserOut.from_domain(user.public())
