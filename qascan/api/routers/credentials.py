"""Firecrawl API key endpoints.

Routes
------
GET    /credentials    → {"configured": bool, "validated": bool}
PUT    /credentials    Body: {"api_key": "fc-..."}  → validate & save
DELETE /credentials    → forget the stored key
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from qascan.credentials import CredentialStore
from qascan.errors import CredentialRejectedError

router = APIRouter()


class CredentialRequest(BaseModel):
    api_key: str


class CredentialStatus(BaseModel):
    configured: bool
    validated: bool


def _status(store: CredentialStore) -> dict[str, Any]:
    return {"configured": store.get() is not None, "validated": store.is_validated}


@router.get("", response_model=CredentialStatus)
def get_credentials(request: Request) -> dict[str, Any]:
    """Report whether a key is stored and whether the provider accepted it."""
    return _status(request.app.state.credentials)


@router.put("", response_model=CredentialStatus)
def put_credentials(body: CredentialRequest, request: Request) -> dict[str, Any]:
    """Validate *api_key* against Firecrawl and store it.

    Returns 422 if the key is blank or rejected; the previous key is kept.
    """
    store: CredentialStore = request.app.state.credentials
    try:
        store.save(body.api_key)
    except CredentialRejectedError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _status(store)


@router.delete("", status_code=204)
def delete_credentials(request: Request) -> Response:
    """Forget the stored key."""
    request.app.state.credentials.clear()
    return Response(status_code=204)
