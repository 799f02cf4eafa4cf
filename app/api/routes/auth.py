# app/api/routes/auth.py
"""Вход покупателя (email или телефон + пароль)."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db_session, get_settings
from app.schemas import LoginRequest
from app.services.auth import (
    SESSION_MAX_AGE,
    USER_SESSION_COOKIE,
    authenticate,
    issue_session_token,
)
from config.settings import Settings

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    profile = await authenticate(session, payload.identifier, payload.password)

    response = JSONResponse({
        "success": True,
        "user": {"id": profile.id, "full_name": profile.full_name},
    })
    response.set_cookie(
        USER_SESSION_COOKIE,
        issue_session_token(profile, settings),
        max_age=SESSION_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return response


@router.post("/logout")
async def logout(settings: Settings = Depends(get_settings)):
    response = JSONResponse({"success": True})
    response.set_cookie(
        USER_SESSION_COOKIE,
        "",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return response
