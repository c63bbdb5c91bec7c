"""
auth.py — Request identity for the RIDS API.

The hosted identity service owns accounts and sessions; this module only
verifies the caller's access token against it and exposes the result as an
explicit capability:

    AuthContext     — what the request carries (an Identity, or nothing)
    require_identity — FastAPI dependency: Identity or Unauthenticated (401)

Tokens are read from the Authorization: Bearer header, falling back to the
session cookie (settings.session_cookie_name). Request bodies are never
consulted for credentials.

Roles: 'reservist' callers may only touch the RIDS form they own
(rids_forms.reservist_id == identity id); staff roles may touch any form.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rids_backend import store
from rids_backend.config import settings
from rids_backend.errors import Forbidden, IdentityUnavailable, Unauthenticated

logger = logging.getLogger(__name__)

STAFF_ROLES = frozenset({"staff", "admin", "super_admin"})
DEFAULT_ROLE = "reservist"


@dataclass(frozen=True)
class Identity:
    id: str
    email: Optional[str] = None
    role: str = DEFAULT_ROLE

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


@dataclass(frozen=True)
class AuthContext:
    """Authentication state of one request. identity is None when signed out."""

    identity: Optional[Identity] = None

    def require(self) -> Identity:
        if self.identity is None:
            raise Unauthenticated()
        return self.identity


# ---------------------------------------------------------------------------
# Identity service client
# ---------------------------------------------------------------------------

class IdentityVerifier:
    """
    Resolves an access token to an Identity via GET {identity_url}/auth/v1/user.

    The httpx.AsyncClient is created once in the lifespan (connection reuse)
    and passed in; the verifier never closes it.
    """

    def __init__(self, client: httpx.AsyncClient, api_key: str = "") -> None:
        self._client = client
        self._api_key = api_key

    async def verify(self, token: str) -> Optional[Identity]:
        """Identity for a valid token; None when the service rejects it."""
        headers = {"Authorization": f"Bearer {token}"}
        if self._api_key:
            headers["apikey"] = self._api_key
        try:
            response = await self._client.get("/auth/v1/user", headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Identity service unreachable: %s", type(exc).__name__)
            raise IdentityUnavailable("Identity service unavailable") from exc

        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            logger.error("Identity service returned status=%d", response.status_code)
            raise IdentityUnavailable("Identity service unavailable")

        body = response.json()
        user_id = body.get("id")
        if not user_id:
            return None
        role = (
            (body.get("app_metadata") or {}).get("role")
            or (body.get("user_metadata") or {}).get("role")
            or DEFAULT_ROLE
        )
        return Identity(id=user_id, email=body.get("email"), role=role)


def create_identity_client() -> httpx.AsyncClient:
    """HTTP client for the identity service — created once in lifespan."""
    return httpx.AsyncClient(
        base_url=settings.identity_url,
        timeout=settings.identity_timeout_s,
    )


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    cookie = request.cookies.get(settings.session_cookie_name)
    return cookie or None


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

async def get_auth_context(request: Request) -> AuthContext:
    """
    Build the AuthContext for this request. Never raises for a missing or
    rejected token; handlers that need a caller depend on require_identity.
    """
    token = extract_token(request)
    if token is None:
        return AuthContext()
    verifier: IdentityVerifier = request.app.state.identity_verifier
    identity = await verifier.verify(token)
    if identity is None:
        logger.info("Rejected session token on %s %s", request.method, request.url.path)
    return AuthContext(identity=identity)


async def require_identity(auth: AuthContext = Depends(get_auth_context)) -> Identity:
    return auth.require()


def ensure_form_access(identity: Identity, form: dict) -> None:
    """Reservists may only reach their own form; staff roles reach any."""
    if identity.is_staff:
        return
    if form["reservist_id"] != identity.id:
        logger.info("Denied identity=%s access to rids_form_id=%s", identity.id, form["id"])
        raise Forbidden("Forbidden")


async def authorize_form_access(db: AsyncSession, identity: Identity, rids_form_id: str) -> None:
    """
    Ownership gate for endpoints addressed by form id without loading the form.
    Staff skip the lookup. An unknown form is left to storage: reads come back
    empty and writes fail the parent foreign key.
    """
    if identity.is_staff:
        return
    form = await store.get_form(db, rids_form_id)
    if form is not None:
        ensure_form_access(identity, form)
