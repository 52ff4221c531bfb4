# gstdesk/infrastructure/external/ewaybill_client.py
"""
Whitebooks e-WayBill API client.

Handles authentication (username/password), e-WayBill generation, lookup,
cancellation, acceptance, rejection, vehicle (Part-B) updates, transporter
change, validity extension and consolidated (trip sheet) generation.

API base path: /ewaybillapi/v1.03/
Authentication: GET /ewaybillapi/v1.03/authenticate (username + password as query params)

All endpoints require:
  Headers: ip_address, client_id, client_secret, gstin
  Query: email
  Authenticated endpoints also require: authtoken (header)
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from gstdesk.config.settings import settings
from gstdesk.domain.models.master_codes import SUCCESS_STATUS_CODES

logger = logging.getLogger("ewaybill_client")

_API_PREFIX = "/ewaybillapi/v1.03"


class EWayBillError(Exception):
    """Raised when e-WayBill API returns an error."""

    def __init__(self, message: str, status_code: int = 0, response: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response or {}


def ewb_number(ewb_no: str | int) -> int | str:
    """The API wants ewbNo as a number; keep anything non-numeric as given."""
    text = str(ewb_no).strip()
    return int(text) if text.isdigit() else text


class EWayBillClient:
    """Client for Whitebooks e-WayBill API."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base = settings.WHITEBOOKS_BASE_URL.rstrip("/")
        # Own credentials, falling back to shared Whitebooks credentials
        self.client_id = settings.WHITEBOOKS_EWAYBILL_CLIENT_ID or settings.WHITEBOOKS_CLIENT_ID
        self.client_secret = settings.WHITEBOOKS_EWAYBILL_CLIENT_SECRET or settings.WHITEBOOKS_CLIENT_SECRET
        self.email = settings.WHITEBOOKS_EMAIL
        self.username = settings.WHITEBOOKS_EWAYBILL_USERNAME or settings.WHITEBOOKS_USERNAME
        self.password = settings.WHITEBOOKS_EWAYBILL_PASSWORD or settings.WHITEBOOKS_PASSWORD
        self.ip_address = settings.WHITEBOOKS_IP_ADDRESS or "127.0.0.1"
        self.timeout = settings.WHITEBOOKS_TIMEOUT
        self._transport = transport

    @classmethod
    def is_configured(cls) -> bool:
        """Check if e-WayBill API credentials are available."""
        return bool(
            settings.WHITEBOOKS_BASE_URL
            and (settings.WHITEBOOKS_EWAYBILL_CLIENT_ID or settings.WHITEBOOKS_CLIENT_ID)
            and (settings.WHITEBOOKS_EWAYBILL_CLIENT_SECRET or settings.WHITEBOOKS_CLIENT_SECRET)
            and (settings.WHITEBOOKS_EWAYBILL_USERNAME or settings.WHITEBOOKS_USERNAME)
            and (settings.WHITEBOOKS_EWAYBILL_PASSWORD or settings.WHITEBOOKS_PASSWORD)
            and settings.WHITEBOOKS_EMAIL
        )

    # ----------------------------------------------------------------
    # Header & param helpers
    # ----------------------------------------------------------------

    def _base_headers(self) -> Dict[str, str]:
        """Base headers required on every e-WayBill API call."""
        return {
            "Content-Type": "application/json",
            "ip_address": self.ip_address,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

    def _auth_headers(self, gstin: str, auth_token: str) -> Dict[str, str]:
        """Headers for authenticated e-WayBill API calls."""
        h = self._base_headers()
        h["gstin"] = gstin
        h["authtoken"] = auth_token
        return h

    def _email_params(self, **extra: str) -> Dict[str, str]:
        """Query params; email is required on every call."""
        params: Dict[str, str] = {"email": self.email}
        params.update(extra)
        return params

    # ----------------------------------------------------------------
    # HTTP transport
    # ----------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        headers: Dict[str, str],
        params: Dict[str, str] | None = None,
        json_body: dict | None = None,
    ) -> Dict[str, Any]:
        """Make an HTTP request to e-WayBill API."""
        url = f"{self.base}{path}"
        logger.info("e-WayBill %s %s", method, path)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                r = await client.request(
                    method, url, headers=headers, json=json_body, params=params,
                )
                r.raise_for_status()
                data = r.json()
                logger.info("e-WayBill response status=%d", r.status_code)
            except httpx.HTTPStatusError as exc:
                body: dict = {}
                try:
                    body = exc.response.json()
                except ValueError:
                    pass
                if not isinstance(body, dict):
                    body = {}
                logger.error(
                    "e-WayBill HTTP error: %s %s -> %d",
                    method, path, exc.response.status_code,
                )
                raise EWayBillError(
                    body.get("status_desc") or f"e-WayBill API error: {exc.response.status_code}",
                    status_code=exc.response.status_code,
                    response=body,
                ) from exc
            except httpx.TimeoutException as exc:
                raise EWayBillError("e-WayBill API timeout") from exc
            except Exception as exc:
                raise EWayBillError(f"e-WayBill unexpected error: {exc}") from exc

        if not isinstance(data, dict):
            return {"data": data}
        status_cd = str(data.get("status_cd", "1"))
        if status_cd not in SUCCESS_STATUS_CODES:
            logger.error("e-WayBill %s %s rejected: %s", method, path, data.get("status_desc"))
            raise EWayBillError(
                data.get("status_desc") or "e-WayBill request rejected",
                status_code=r.status_code,
                response=data,
            )
        return data

    # ----------------------------------------------------------------
    # Authentication
    # ----------------------------------------------------------------

    async def authenticate(self, gstin: str) -> str:
        """
        Authenticate with e-WayBill API.

        Uses username/password as query params.
        Returns auth_token string.
        """
        if not self.username or not self.password:
            raise EWayBillError("e-WayBill username/password not configured")

        headers = self._base_headers()
        headers["gstin"] = gstin

        resp = await self._request(
            "GET",
            f"{_API_PREFIX}/authenticate",
            headers=headers,
            params=self._email_params(
                username=self.username,
                password=self.password,
            ),
        )

        # Sandbox may return status_cd:"1" with no actual token;
        # Production returns the token under data or authtoken.
        data = resp.get("data", {}) or {}
        auth_token = (
            data.get("authtoken")
            or data.get("auth_token")
            or data.get("AuthToken")
            or resp.get("authtoken")
            or resp.get("auth_token")
            or ""
        )

        status_cd = str(resp.get("status_cd", "0"))
        if not auth_token and status_cd == "1":
            auth_token = "sandbox-token"
            logger.info("e-WayBill sandbox auth succeeded (no real token returned)")

        if not auth_token:
            raise EWayBillError(
                "Failed to obtain e-WayBill auth_token", response=resp,
            )

        logger.info("Authenticated with e-WayBill API for GSTIN %s", gstin)
        return auth_token

    # ----------------------------------------------------------------
    # Generation & retrieval
    # ----------------------------------------------------------------

    async def generate_ewaybill(
        self,
        gstin: str,
        auth_token: str,
        ewaybill_data: dict,
    ) -> Dict[str, Any]:
        """
        Generate a new e-WayBill.

        Args:
            ewaybill_data: Payload built by ``prepare_ewb_payload`` (Part-A
                document and party details, itemList, totals, and Part-B
                transport details).

        Returns:
            Response containing ewayBillNo, ewayBillDate and validUpto.
        """
        headers = self._auth_headers(gstin, auth_token)
        return await self._request(
            "POST",
            f"{_API_PREFIX}/ewayapi/genewaybill",
            headers=headers,
            params=self._email_params(),
            json_body=ewaybill_data,
        )

    async def get_ewaybill(
        self,
        gstin: str,
        auth_token: str,
        ewb_no: str | int,
    ) -> Dict[str, Any]:
        """Get full details of a specific e-WayBill by its number."""
        headers = self._auth_headers(gstin, auth_token)
        return await self._request(
            "GET",
            f"{_API_PREFIX}/ewayapi/getewaybill",
            headers=headers,
            params=self._email_params(ewbNo=str(ewb_no)),
        )

    # ----------------------------------------------------------------
    # Lifecycle actions
    # ----------------------------------------------------------------

    async def cancel_ewaybill(
        self,
        gstin: str,
        auth_token: str,
        ewb_no: str | int,
        cancel_reason_code: str,
        cancel_remarks: str = "",
    ) -> Dict[str, Any]:
        """Cancel an e-WayBill (portal reason codes 1-5)."""
        headers = self._auth_headers(gstin, auth_token)
        body: Dict[str, Any] = {
            "ewbNo": ewb_number(ewb_no),
            "cancelRsnCode": ewb_number(cancel_reason_code),
        }
        if cancel_remarks:
            body["cancelRmrk"] = cancel_remarks

        return await self._request(
            "POST",
            f"{_API_PREFIX}/ewayapi/canewb",
            headers=headers,
            params=self._email_params(),
            json_body=body,
        )

    async def accept_ewaybill(
        self,
        gstin: str,
        auth_token: str,
        ewb_no: str | int,
    ) -> Dict[str, Any]:
        """Accept an e-WayBill generated on you by another party."""
        headers = self._auth_headers(gstin, auth_token)
        return await self._request(
            "POST",
            f"{_API_PREFIX}/ewayapi/accewb",
            headers=headers,
            params=self._email_params(),
            json_body={"ewbNo": ewb_number(ewb_no)},
        )

    async def reject_ewaybill(
        self,
        gstin: str,
        auth_token: str,
        ewb_no: str | int,
        reject_reason: str = "",
    ) -> Dict[str, Any]:
        """Reject an e-WayBill generated on you by another party."""
        headers = self._auth_headers(gstin, auth_token)
        body: Dict[str, Any] = {"ewbNo": ewb_number(ewb_no)}
        if reject_reason:
            body["rejectReason"] = reject_reason
        return await self._request(
            "POST",
            f"{_API_PREFIX}/ewayapi/rejewb",
            headers=headers,
            params=self._email_params(),
            json_body=body,
        )

    async def update_vehicle(
        self,
        gstin: str,
        auth_token: str,
        vehicle_data: dict,
    ) -> Dict[str, Any]:
        """
        Update Part-B / vehicle number of an e-WayBill.

        Args:
            vehicle_data: Dict with keys:
                - ewbNo (int): e-WayBill number
                - fromPlace (str), fromState (int)
                - transMode (str): 1=Road, 2=Rail, 3=Air, 4=Ship
                - reasonCode (str), reasonRem (str)
                - vehicleNo (str, optional), transDocNo (str, optional),
                  transDocDate (str, optional)
        """
        headers = self._auth_headers(gstin, auth_token)
        return await self._request(
            "POST",
            f"{_API_PREFIX}/ewayapi/vehewb",
            headers=headers,
            params=self._email_params(),
            json_body=vehicle_data,
        )

    async def update_transporter(
        self,
        gstin: str,
        auth_token: str,
        ewb_no: str | int,
        transporter_id: str,
        transporter_name: str = "",
    ) -> Dict[str, Any]:
        """
        Hand an e-WayBill over to a new transporter.

        Args:
            transporter_id: 15-character GSTIN of the new transporter.
        """
        headers = self._auth_headers(gstin, auth_token)
        body: Dict[str, Any] = {"ewbNo": ewb_number(ewb_no), "transporterId": transporter_id}
        if transporter_name:
            body["transporterName"] = transporter_name
        return await self._request(
            "POST",
            f"{_API_PREFIX}/ewayapi/updatetransporter",
            headers=headers,
            params=self._email_params(),
            json_body=body,
        )

    async def extend_validity(
        self,
        gstin: str,
        auth_token: str,
        extend_data: dict,
    ) -> Dict[str, Any]:
        """
        Extend the validity of an e-WayBill.

        Args:
            extend_data: Dict with keys:
                - ewbNo (int)
                - fromPlace (str): current location of the goods
                - extnRemarks (str): reason for extension
                - newValidUntil (str): ``dd/MM/yyyy HH:mm``
        """
        headers = self._auth_headers(gstin, auth_token)
        return await self._request(
            "POST",
            f"{_API_PREFIX}/ewayapi/extendvalidity",
            headers=headers,
            params=self._email_params(),
            json_body=extend_data,
        )

    async def generate_consolidated(
        self,
        gstin: str,
        auth_token: str,
        consolidated_data: dict,
    ) -> Dict[str, Any]:
        """
        Generate a consolidated e-WayBill (trip sheet) for several bills.

        Args:
            consolidated_data: Dict with keys:
                - fromPlace (str), fromState (int)
                - transMode (str): 1=Road, 2=Rail, 3=Air, 4=Ship
                - vehicleNo (str), transDocNo (str), transDocDate (str)
                - tripSheetEwbBills (list): ``[{"ewbNo": int}, ...]``

        Returns:
            Response containing cEwbNo and cEwbDate.
        """
        headers = self._auth_headers(gstin, auth_token)
        return await self._request(
            "POST",
            f"{_API_PREFIX}/ewayapi/gencewb",
            headers=headers,
            params=self._email_params(),
            json_body=consolidated_data,
        )
