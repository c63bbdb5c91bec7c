"""
gateway.py — How the wizard reaches storage.

SectionGateway is the protocol WizardController depends on. ApiSectionGateway
implements it against the RIDS HTTP API with an httpx.AsyncClient, unwrapping
the {success, data | error} envelope:

  - 401                         → errors.Unauthenticated (caller redirects to sign-in)
  - any other success: false    → GatewayError(status_code, message)
  - transport failure           → GatewayError(503, ...)

Values passed in must already be JSON-ready (drafts dumped with mode="json").
"""
import logging
from typing import Any, Optional, Protocol

import httpx

from rids_backend.errors import RidsError, Unauthenticated

logger = logging.getLogger(__name__)


class GatewayError(RidsError):
    """The API answered with success: false."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class SectionGateway(Protocol):
    async def save_form_fields(self, rids_form_id: str, fields: dict) -> dict: ...

    async def list_entries(self, rids_form_id: str, section_name: str) -> list[dict]: ...

    async def create_entry(self, rids_form_id: str, section_name: str, values: dict) -> dict: ...

    async def update_entry(
        self, rids_form_id: str, section_name: str, entry_id: str, values: dict
    ) -> dict: ...

    async def submit_form(self, rids_form_id: str) -> dict: ...

    async def save_progress(self, rids_form_id: str, progress: dict) -> dict: ...

    async def load_progress(self, rids_form_id: str) -> dict: ...


class ApiSectionGateway:
    """
    SectionGateway over HTTP. The client carries base_url and credentials
    (Authorization header or session cookie); the gateway never closes it.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def _call(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TransportError as exc:
            logger.warning("RIDS API %s %s unreachable: %s", method, path, type(exc).__name__)
            raise GatewayError(503, "RIDS API unreachable") from exc
        try:
            body = response.json()
        except ValueError:
            body = {"success": False, "error": response.text or response.reason_phrase}

        if response.status_code == 401:
            raise Unauthenticated(body.get("error") or "Unauthorized")
        if response.is_error or not body.get("success"):
            message = body.get("error") or f"HTTP {response.status_code}"
            logger.info("RIDS API %s %s failed status=%d", method, path, response.status_code)
            raise GatewayError(response.status_code, message)
        return body.get("data")

    async def save_form_fields(self, rids_form_id: str, fields: dict) -> dict:
        return await self._call("PUT", f"/api/staff/rids/{rids_form_id}", json=fields)

    async def list_entries(self, rids_form_id: str, section_name: str) -> list[dict]:
        return await self._call("GET", f"/api/staff/rids/{rids_form_id}/sections/{section_name}")

    async def create_entry(self, rids_form_id: str, section_name: str, values: dict) -> dict:
        return await self._call(
            "POST", f"/api/staff/rids/{rids_form_id}/sections/{section_name}", json=values
        )

    async def update_entry(
        self, rids_form_id: str, section_name: str, entry_id: str, values: dict
    ) -> dict:
        return await self._call(
            "PUT",
            f"/api/staff/rids/{rids_form_id}/sections/{section_name}/{entry_id}",
            json=values,
        )

    async def submit_form(self, rids_form_id: str) -> dict:
        return await self._call("PUT", f"/api/staff/rids/{rids_form_id}/submit")

    async def save_progress(self, rids_form_id: str, progress: dict) -> dict:
        return await self._call("PUT", f"/api/staff/rids/{rids_form_id}/wizard", json=progress)

    async def load_progress(self, rids_form_id: str) -> dict:
        return await self._call("GET", f"/api/staff/rids/{rids_form_id}/wizard")
