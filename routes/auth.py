"""
Auth Routes

Registration, login and session endpoints.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from context import AppContext
from db import new_id, public_doc
from middleware import body_as
from models import LoginRequest, RegisterRequest
from services.auth import (
    create_session,
    delete_session,
    get_bearer_token,
    hash_password,
    require_user,
    verify_password
)
from utils import utc_now_iso

logger = logging.getLogger(__name__)

HIDDEN_USER_FIELDS = ("password_hash",)


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["auth"])
    db = ctx.db

    @router.post("/register", status_code=201)
    async def register(payload: RegisterRequest = Depends(body_as(RegisterRequest))):
        """Create an account and return a session token."""
        email = payload.email.strip().lower()
        if await db["users"].find_one({"email": email}):
            raise HTTPException(status_code=409, detail="Email already registered")

        user = {
            "_id": new_id(),
            "name": payload.name,
            "email": email,
            "role": "customer",
            "password_hash": await asyncio.to_thread(hash_password, payload.password),
            "created_at": utc_now_iso()
        }
        await db["users"].insert_one(user)
        token = await create_session(db, user["_id"])
        logger.info(f"User registered: {user['_id']}")

        return {"token": token, "user": public_doc(user, HIDDEN_USER_FIELDS)}

    @router.post("/login")
    async def login(payload: LoginRequest = Depends(body_as(LoginRequest))):
        user = await db["users"].find_one({"email": payload.email.strip().lower()})
        if not user or not await asyncio.to_thread(
            verify_password, payload.password, user["password_hash"]
        ):
            raise HTTPException(status_code=401, detail="Invalid email or password")

        token = await create_session(db, user["_id"])
        return {"token": token, "user": public_doc(user, HIDDEN_USER_FIELDS)}

    @router.get("/me")
    async def me(user: dict = Depends(require_user(db))):
        return public_doc(user, HIDDEN_USER_FIELDS)

    @router.post("/logout")
    async def logout(
        user: dict = Depends(require_user(db)),
        authorization: Optional[str] = Header(None)
    ):
        await delete_session(db, get_bearer_token(authorization))
        return {"ok": True}

    return router
