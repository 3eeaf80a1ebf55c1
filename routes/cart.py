"""
Cart Routes

Per-user shopping cart. One cart document per user, keyed by user id.
Every change is a single atomic update on that document.
"""

from fastapi import APIRouter, Depends, HTTPException

from context import AppContext
from middleware import body_as
from models import CartItemRequest
from services.auth import require_user
from utils import utc_now_iso

# Attempts before giving up on a line that keeps appearing and vanishing
MAX_ADD_ATTEMPTS = 3


async def load_cart(db, user_id: str) -> dict:
    cart = await db["carts"].find_one({"_id": user_id})
    return cart or {"_id": user_id, "items": []}


async def ensure_cart(db, user_id: str):
    await db["carts"].update_one(
        {"_id": user_id},
        {"$setOnInsert": {"items": []}},
        upsert=True
    )


async def add_cart_item(db, user_id: str, product: dict, quantity: int) -> bool:
    """
    Add a product to a cart, merging with an existing line.

    Tries to bump the quantity of an existing line first, then to push a
    new line guarded on the product not being there yet.

    Returns:
        True once one of the two updates matched
    """
    await ensure_cart(db, user_id)

    for _ in range(MAX_ADD_ATTEMPTS):
        now = utc_now_iso()
        merged = await db["carts"].update_one(
            {"_id": user_id, "items.product_id": product["_id"]},
            {"$inc": {"items.$.quantity": quantity}, "$set": {"updated_at": now}}
        )
        if merged.matched_count:
            return True

        pushed = await db["carts"].update_one(
            {"_id": user_id, "items.product_id": {"$ne": product["_id"]}},
            {
                "$push": {"items": {
                    "product_id": product["_id"],
                    "name": product["name"],
                    "price": product["price"],
                    "quantity": quantity
                }},
                "$set": {"updated_at": now}
            }
        )
        if pushed.matched_count:
            return True

    return False


def format_cart(cart: dict) -> dict:
    items = cart.get("items", [])
    return {
        "items": items,
        "total": round(sum(i["price"] * i["quantity"] for i in items), 2)
    }


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["cart"])
    db = ctx.db
    current_user = require_user(db)

    @router.get("")
    async def get_cart(user: dict = Depends(current_user)):
        return format_cart(await load_cart(db, user["_id"]))

    @router.post("/items")
    async def add_item(
        payload: CartItemRequest = Depends(body_as(CartItemRequest)),
        user: dict = Depends(current_user)
    ):
        product = await db["products"].find_one({"_id": payload.product_id})
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")

        if not await add_cart_item(db, user["_id"], product, payload.quantity):
            raise HTTPException(status_code=409, detail="Cart changed, please retry")
        return format_cart(await load_cart(db, user["_id"]))

    @router.delete("/items/{product_id}")
    async def remove_item(product_id: str, user: dict = Depends(current_user)):
        await db["carts"].update_one(
            {"_id": user["_id"]},
            {"$pull": {"items": {"product_id": product_id}}, "$set": {"updated_at": utc_now_iso()}}
        )
        return format_cart(await load_cart(db, user["_id"]))

    @router.delete("")
    async def clear_cart(user: dict = Depends(current_user)):
        await db["carts"].update_one(
            {"_id": user["_id"]},
            {"$set": {"items": [], "updated_at": utc_now_iso()}},
            upsert=True
        )
        return format_cart({"items": []})

    return router
