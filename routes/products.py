"""
Product Routes

Read-only catalogue endpoints.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException

from context import AppContext
from db import public_doc

MAX_PRODUCTS = 200


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["products"])
    db = ctx.db

    @router.get("")
    async def list_products(category: Optional[str] = None):
        """
        List products, optionally filtered by category.

        Query parameters:
        - **category**: Only return products in this category
        """
        query = {"category": category} if category else {}
        products = await db["products"].find(query).sort("name", 1).to_list(length=MAX_PRODUCTS)
        return [public_doc(p) for p in products]

    @router.get("/{product_id}")
    async def get_product(product_id: str):
        product = await db["products"].find_one({"_id": product_id})
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        return public_doc(product)

    return router
