"""
Unit tests for auth.py: token extraction, identity-service verification
(httpx.MockTransport, no network) and the request dependencies.
"""
from types import SimpleNamespace
from typing import Optional

import httpx
import pytest
from starlette.requests import Request

from rids_backend.auth import (
    AuthContext,
    Identity,
    IdentityVerifier,
    authorize_form_access,
    ensure_form_access,
    extract_token,
    get_auth_context,
)
from rids_backend.config import settings
from rids_backend.errors import Forbidden, IdentityUnavailable, Unauthenticated
from rids_backend.tests.identities import OTHER_RESERVIST, RESERVIST, STAFF


def _request(headers: Optional[dict] = None, app: object = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/staff/rids",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "app": app,
    }
    return Request(scope)


def _verifier(handler) -> IdentityVerifier:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://identity.test")
    return IdentityVerifier(client, api_key="anon-key")


# ---------------------------------------------------------------------------
# extract_token
# ---------------------------------------------------------------------------

def test_bearer_header_is_preferred_over_cookie() -> None:
    request = _request(
        {"Authorization": "Bearer header-token", "Cookie": f"{settings.session_cookie_name}=cookie-token"}
    )
    assert extract_token(request) == "header-token"


def test_cookie_is_used_without_header() -> None:
    request = _request({"Cookie": f"{settings.session_cookie_name}=cookie-token"})
    assert extract_token(request) == "cookie-token"


@pytest.mark.parametrize("header", ["Basic abc", "Bearer ", "token-only"])
def test_malformed_header_yields_no_token(header: str) -> None:
    assert extract_token(_request({"Authorization": header})) is None


# ---------------------------------------------------------------------------
# IdentityVerifier
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_verify_resolves_identity_and_role() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["authorization"] = request.headers["authorization"]
        seen["apikey"] = request.headers["apikey"]
        return httpx.Response(
            200,
            json={"id": STAFF.id, "email": "clerk@unit.mil", "app_metadata": {"role": "admin"}},
        )

    identity = await _verifier(handler).verify("tok-1")
    assert identity == Identity(id=STAFF.id, email="clerk@unit.mil", role="admin")
    assert identity.is_staff
    assert seen == {"path": "/auth/v1/user", "authorization": "Bearer tok-1", "apikey": "anon-key"}


@pytest.mark.asyncio
async def test_verify_defaults_role_to_reservist() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": RESERVIST.id, "user_metadata": {}})

    identity = await _verifier(handler).verify("tok")
    assert identity.role == "reservist"
    assert not identity.is_staff


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_rejected_token_yields_none(status: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"message": "invalid JWT"})

    assert await _verifier(handler).verify("expired") is None


@pytest.mark.asyncio
async def test_identity_service_error_is_503() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(IdentityUnavailable) as excinfo:
        await _verifier(handler).verify("tok")
    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_identity_service_unreachable_is_503() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(IdentityUnavailable):
        await _verifier(handler).verify("tok")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

class FakeVerifier:
    def __init__(self, identity: Optional[Identity]) -> None:
        self.identity = identity
        self.tokens: list[str] = []

    async def verify(self, token: str) -> Optional[Identity]:
        self.tokens.append(token)
        return self.identity


def _app_with(verifier: FakeVerifier) -> SimpleNamespace:
    return SimpleNamespace(state=SimpleNamespace(identity_verifier=verifier))


@pytest.mark.asyncio
async def test_no_credential_means_signed_out_without_calling_service() -> None:
    verifier = FakeVerifier(STAFF)
    context = await get_auth_context(_request(app=_app_with(verifier)))
    assert context.identity is None
    assert verifier.tokens == []
    with pytest.raises(Unauthenticated):
        context.require()


@pytest.mark.asyncio
async def test_valid_token_yields_identity() -> None:
    verifier = FakeVerifier(RESERVIST)
    context = await get_auth_context(_request({"Authorization": "Bearer abc"}, app=_app_with(verifier)))
    assert context.require() == RESERVIST
    assert verifier.tokens == ["abc"]


@pytest.mark.asyncio
async def test_rejected_token_is_signed_out() -> None:
    context = await get_auth_context(_request({"Authorization": "Bearer abc"}, app=_app_with(FakeVerifier(None))))
    assert context == AuthContext()


def test_form_ownership() -> None:
    form = {"id": "f-1", "reservist_id": RESERVIST.id}
    ensure_form_access(RESERVIST, form)
    ensure_form_access(STAFF, form)
    with pytest.raises(Forbidden):
        ensure_form_access(OTHER_RESERVIST, form)


@pytest.mark.asyncio
async def test_authorize_form_access_checks_owner(db, rids_form) -> None:
    await authorize_form_access(db, RESERVIST, rids_form["id"])
    await authorize_form_access(db, STAFF, rids_form["id"])
    with pytest.raises(Forbidden):
        await authorize_form_access(db, OTHER_RESERVIST, rids_form["id"])
