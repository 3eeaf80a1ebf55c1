"""
Auth Service

Password hashing and bearer-token sessions stored in MongoDB.
"""

import hashlib
import hmac
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException

from utils import utc_now_iso

# scrypt cost parameters. Hashing is CPU-bound, callers on the event
# loop run it in a worker thread.
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    """
    Hash a password with scrypt.

    Args:
        password: Plain password
        salt: Salt to use (random when omitted)

    Returns:
        String of the form "<salt hex>$<hash hex>"
    """
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.scrypt(password.encode(), salt=salt, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check a plain password against a stored scrypt hash."""
    try:
        salt_hex, digest_hex = stored.split("$", 1)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    expected = hash_password(password, salt).split("$", 1)[1]
    return hmac.compare_digest(expected, digest_hex)


async def create_session(db, user_id: str) -> str:
    """
    Create a bearer token for a user.

    Returns:
        Opaque token string
    """
    token = secrets.token_urlsafe(32)
    await db["sessions"].insert_one({
        "_id": token,
        "user_id": user_id,
        "created_at": utc_now_iso()
    })
    return token


async def delete_session(db, token: str):
    await db["sessions"].delete_one({"_id": token})


def get_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    """
    Extract the token from an Authorization header.

    Args:
        auth_header: Header value (e.g., "Bearer <token>")

    Returns:
        Token or None
    """
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.replace("Bearer ", "", 1).strip() or None


async def get_user_for_token(db, token: Optional[str]) -> Optional[dict]:
    if not token:
        return None
    session = await db["sessions"].find_one({"_id": token})
    if not session:
        return None
    return await db["users"].find_one({"_id": session["user_id"]})


def require_user(db):
    """
    Build a dependency that resolves the authenticated user.

    Args:
        db: Database handle

    Returns:
        FastAPI dependency returning the user document

    Raises:
        HTTPException: 401 when the token is missing or unknown
    """

    async def dependency(authorization: Optional[str] = Header(None)) -> dict:
        user = await get_user_for_token(db, get_bearer_token(authorization))
        if not user:
            raise HTTPException(
                status_code=401,
                detail="Authentication required. Please provide Authorization header."
            )
        return user

    return dependency


def require_role(db, role: str):
    """
    Build a dependency that resolves the authenticated user and checks
    their role.

    Raises:
        HTTPException: 401 when unauthenticated, 403 for another role
    """
    current_user = require_user(db)

    async def dependency(user: dict = Depends(current_user)) -> dict:
        if user.get("role") != role:
            raise HTTPException(status_code=403, detail=f"Only a {role} can do this")
        return user

    return dependency
