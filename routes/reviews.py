"""
Review Routes

Product reviews: public listing, authenticated posting.
"""

from fastapi import APIRouter, Depends, HTTPException

from context import AppContext
from db import new_id, public_doc
from middleware import body_as
from models import ReviewRequest
from services.auth import require_user
from utils import utc_now_iso

MAX_REVIEWS = 100


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["reviews"])
    db = ctx.db

    @router.get("/product/{product_id}")
    async def list_reviews(product_id: str):
        reviews = await db["reviews"].find({"product_id": product_id}).sort(
            "created_at", -1
        ).to_list(length=MAX_REVIEWS)
        return [public_doc(r) for r in reviews]

    @router.post("", status_code=201)
    async def create_review(
        payload: ReviewRequest = Depends(body_as(ReviewRequest)),
        user: dict = Depends(require_user(db))
    ):
        if not await db["products"].find_one({"_id": payload.product_id}):
            raise HTTPException(status_code=404, detail="Product not found")

        review = {
            "_id": new_id(),
            "product_id": payload.product_id,
            "user_id": user["_id"],
            "user_name": user.get("name"),
            "rating": payload.rating,
            "comment": payload.comment,
            "created_at": utc_now_iso()
        }
        await db["reviews"].insert_one(review)
        return public_doc(review)

    return router
