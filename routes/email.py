"""
Email Routes

Contact form submissions, queued in MongoDB for the mail worker.
"""

import logging

from fastapi import APIRouter, Depends

from context import AppContext
from db import new_id
from middleware import body_as
from models import ContactRequest
from utils import utc_now_iso

logger = logging.getLogger(__name__)


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["email"])
    db = ctx.db

    @router.post("/contact", status_code=202)
    async def contact(payload: ContactRequest = Depends(body_as(ContactRequest))):
        message_id = new_id()
        await db["contact_messages"].insert_one({
            "_id": message_id,
            **payload.model_dump(),
            "status": "queued",
            "created_at": utc_now_iso()
        })
        logger.info(f"Contact message queued: {message_id}")
        return {"ok": True, "id": message_id}

    return router
