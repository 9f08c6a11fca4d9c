"""
Shared FastAPI dependencies.

Caller identity is supplied by the hosting environment through
request headers; this service never authenticates users itself.
"""

from typing import AsyncIterator

from fastapi import Header, HTTPException

from app.config import get_settings
from app.models.schemas import Owner
from app.services.concept_repository import ConceptRepository
from app.services.stores import create_record_store


async def get_current_owner(
    x_user_id: str | None = Header(default=None),
    x_username: str | None = Header(default=None),
) -> Owner:
    """
    Resolve the acting user from identity headers.

    Raises:
        401: X-User-Id header missing
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing caller identity (X-User-Id)")
    return Owner(user_id=x_user_id, username=x_username or x_user_id)


async def get_repository() -> AsyncIterator[ConceptRepository]:
    """Concept repository bound to the configured record store."""
    settings = get_settings()
    record_store = create_record_store(settings)
    try:
        yield ConceptRepository(record_store, settings)
    finally:
        await record_store.close()
