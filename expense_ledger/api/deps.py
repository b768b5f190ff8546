"""
Shared request dependencies for the API routers.
"""

from fastapi import Header, HTTPException

from expense_ledger.errors import LedgerError

USER_ID_MAX_LENGTH = 64


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """
    Caller identity from the X-User-Id header.

    Authentication happens upstream; this service only scopes
    every read and write to the id it is given.
    """
    user_id = (x_user_id or "").strip()
    if not user_id or len(user_id) > USER_ID_MAX_LENGTH:
        raise HTTPException(
            status_code=401,
            detail={
                "kind": "unauthorized",
                "message": "X-User-Id header is required",
                "details": {},
            },
        )
    return user_id


def http_error(e: LedgerError) -> HTTPException:
    """Map a ledger error to its HTTP response."""
    return HTTPException(status_code=e.status_code, detail=e.to_dict())
