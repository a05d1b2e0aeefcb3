"""
Authentication utilities for Appwrite JWT verification.

Token issuance and password handling belong to Appwrite; this module only
decodes the JWT it issued and looks up accounts through the server SDK.
"""
import jwt
from typing import Optional
from fastapi import HTTPException, status
from appwrite.client import Client
from appwrite.services.users import Users
from appwrite.exception import AppwriteException

from app.core import config


class AppwriteClient:
    """Singleton Appwrite client for server-side operations."""

    _instance: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        """Get or create Appwrite client instance."""
        if cls._instance is None:
            cls._instance = Client()
            cls._instance.set_endpoint(config.APPWRITE_ENDPOINT)
            cls._instance.set_project(config.APPWRITE_PROJECT_ID)
            cls._instance.set_key(config.APPWRITE_API_KEY)
        return cls._instance


def verify_jwt_token(token: str) -> dict:
    """
    Decode an Appwrite JWT and return its payload.

    Raises:
        HTTPException: 401 if the token is expired or malformed
    """
    try:
        # Appwrite signs the token; expiry is still enforced locally
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": True}
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_appwrite_account(appwrite_id: str) -> dict:
    """
    Fetch an Appwrite account, used to fill profile fields on create.

    Raises:
        HTTPException: 400 if Appwrite does not know the account
    """
    try:
        client = AppwriteClient.get_client()
        return Users(client).get(appwrite_id)
    except AppwriteException as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown Appwrite account: {str(e)}",
        )


def split_name(full_name: str) -> tuple[str, str]:
    first, _, last = (full_name or "").strip().partition(" ")
    return first or "Unknown", last.strip() or "-"
