# gstdesk/infrastructure/external/einvoice_client.py
"""
Whitebooks e-Invoice (IRP) API client.

Handles authentication (username/password), IRN generation, lookup,
cancellation, and GSTIN details.

API base path: /einvoice/
Authentication: GET /einvoice/authenticate (username + password in headers)

All endpoints require:
  Headers: ip_address, client_id, client_secret, username, gstin
  Query: email
  Authenticated endpoints also require: auth-token
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from gstdesk.config.settings import settings
from gstdesk.domain.models.master_codes import SUCCESS_STATUS_CODES

logger = logging.getLogger("einvoice_client")

_GENERATE_TIMEOUT = 60


class EInvoiceError(Exception):
    """Raised when e-Invoice API returns an error."""

    def __init__(self, message: str, status_code: int = 0, response: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response or {}


class EInvoiceClient:
    """Client for Whitebooks e-Invoice API."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base = settings.WHITEBOOKS_BASE_URL.rstrip("/")
        self.client_id = settings.WHITEBOOKS_CLIENT_ID
        self.client_secret = settings.WHITEBOOKS_CLIENT_SECRET
        self.email = settings.WHITEBOOKS_EMAIL
        self.username = settings.WHITEBOOKS_USERNAME
        self.password = settings.WHITEBOOKS_PASSWORD
        self.ip_address = settings.WHITEBOOKS_IP_ADDRESS or "127.0.0.1"
        self.timeout = settings.WHITEBOOKS_TIMEOUT
        self._transport = transport

    @classmethod
    def is_configured(cls) -> bool:
        """Check if e-Invoice API credentials are available."""
        return bool(
            settings.WHITEBOOKS_BASE_URL
            and settings.WHITEBOOKS_CLIENT_ID
            and settings.WHITEBOOKS_CLIENT_SECRET
            and settings.WHITEBOOKS_USERNAME
            and settings.WHITEBOOKS_PASSWORD
            and settings.WHITEBOOKS_EMAIL
        )

    def _base_headers(self) -> Dict[str, str]:
        """Base headers for all e-Invoice API calls."""
        return {
            "Content-Type": "application/json",
            "ip_address": self.ip_address,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "username": self.username,
        }

    def _auth_headers(self, gstin: str, auth_token: str) -> Dict[str, str]:
        """Headers for authenticated e-Invoice API calls."""
        h = self._base_headers()
        h["gstin"] = gstin
        h["auth-token"] = auth_token
        return h

    def _email_params(self, **extra) -> Dict[str, str]:
        """Query params; email is required on every call."""
        params = {"email": self.email}
        params.update(extra)
        return params

    async def _request(
        self,
        method: str,
        path: str,
        headers: Dict[str, str],
        params: Dict[str, str] | None = None,
        json_body: dict | None = None,
        timeout: float | None = None,
    ) -> Dict[str, Any]:
        """Make an HTTP request to e-Invoice API."""
        url = f"{self.base}{path}"
        logger.info("e-Invoice %s %s", method, path)

        async with httpx.AsyncClient(timeout=timeout or self.timeout, transport=self._transport) as client:
            try:
                r = await client.request(
                    method, url, headers=headers, json=json_body, params=params,
                )
                r.raise_for_status()
                data = r.json()
                logger.info("e-Invoice response status=%d", r.status_code)
            except httpx.HTTPStatusError as exc:
                body = {}
                try:
                    body = exc.response.json()
                except ValueError:
                    pass
                if not isinstance(body, dict):
                    body = {}
                logger.error("e-Invoice HTTP error: %s %s -> %d", method, path, exc.response.status_code)
                raise EInvoiceError(
                    body.get("status_desc") or f"e-Invoice API error: {exc.response.status_code}",
                    status_code=exc.response.status_code,
                    response=body,
                ) from exc
            except httpx.TimeoutException as exc:
                raise EInvoiceError("e-Invoice API timeout") from exc
            except Exception as exc:
                raise EInvoiceError(f"e-Invoice unexpected error: {exc}") from exc

        if not isinstance(data, dict):
            return {"data": data}
        status_cd = str(data.get("status_cd", "1"))
        if status_cd not in SUCCESS_STATUS_CODES:
            logger.error("e-Invoice %s %s rejected: %s", method, path, data.get("status_desc"))
            raise EInvoiceError(
                data.get("status_desc") or "e-Invoice request rejected",
                status_code=r.status_code,
                response=data,
            )
        return data

    # ----------------------------------------------------------------
    # Authentication
    # ----------------------------------------------------------------

    async def authenticate(self, gstin: str) -> str:
        """
        Authenticate with e-Invoice API.

        Uses username/password as HEADERS.
        Returns auth_token string.
        """
        if not self.username or not self.password:
            raise EInvoiceError("e-Invoice username/password not configured")

        headers = self._base_headers()
        headers["gstin"] = gstin
        headers["password"] = self.password

        resp = await self._request(
            "GET",
            "/einvoice/authenticate",
            headers=headers,
            params=self._email_params(),
        )

        # Response puts token under data.AuthToken (capital A/T)
        data = resp.get("data", {}) or {}
        auth_token = (
            data.get("AuthToken")
            or data.get("auth_token")
            or resp.get("AuthToken")
            or resp.get("auth_token")
            or ""
        )
        if not auth_token:
            raise EInvoiceError("Failed to obtain e-Invoice auth_token", response=resp)

        logger.info("Authenticated with e-Invoice API for GSTIN %s", gstin)
        return auth_token

    # ----------------------------------------------------------------
    # IRN (Invoice Reference Number)
    # ----------------------------------------------------------------

    async def generate_irn(
        self, gstin: str, auth_token: str, invoice_data: dict,
    ) -> Dict[str, Any]:
        """
        Generate an IRN for an e-Invoice.

        Args:
            gstin: Supplier GSTIN
            auth_token: Token from authenticate()
            invoice_data: IRP payload built by ``prepare_irn_payload``

        Returns:
            Response containing Irn, AckNo, AckDt, SignedQRCode, etc.
        """
        headers = self._auth_headers(gstin, auth_token)
        return await self._request(
            "POST",
            "/einvoice/type/GENERATE/version/V1_03",
            headers=headers,
            params=self._email_params(),
            json_body=invoice_data,
            timeout=_GENERATE_TIMEOUT,
        )

    async def get_irn_details(
        self, gstin: str, auth_token: str, irn: str,
    ) -> Dict[str, Any]:
        """Get e-Invoice details for a given IRN."""
        headers = self._auth_headers(gstin, auth_token)
        return await self._request(
            "GET",
            "/einvoice/type/GETIRN/version/V1_03",
            headers=headers,
            params=self._email_params(param1=irn, supplier_gstn=gstin),
        )

    async def get_irn_by_doc(
        self,
        gstin: str,
        auth_token: str,
        doc_type: str,
        doc_num: str,
        doc_date: str,
    ) -> Dict[str, Any]:
        """Get IRN details by document type, number and date (dd/MM/yyyy)."""
        headers = self._auth_headers(gstin, auth_token)
        headers["docnum"] = doc_num
        headers["docdate"] = doc_date
        return await self._request(
            "GET",
            "/einvoice/type/GETIRNBYDOC/version/V1_03",
            headers=headers,
            params=self._email_params(param1=doc_type, supplier_gstn=gstin),
        )

    async def cancel_irn(
        self,
        gstin: str,
        auth_token: str,
        irn: str,
        reason_code: str,
        remark: str = "",
    ) -> Dict[str, Any]:
        """
        Cancel an IRN.

        Args:
            reason_code: IRP CnlRsn (1=Duplicate, 2=Data Entry Mistake,
                         3=Order Cancelled, 4=Other)
            remark: CnlRem, mandatory for reason 4
        """
        headers = self._auth_headers(gstin, auth_token)
        body: Dict[str, Any] = {"Irn": irn, "CnlRsn": reason_code}
        if remark:
            body["CnlRem"] = remark
        return await self._request(
            "POST",
            "/einvoice/type/CANCEL/version/V1_03",
            headers=headers,
            params=self._email_params(),
            json_body=body,
        )

    # ----------------------------------------------------------------
    # GSTN
    # ----------------------------------------------------------------

    async def get_gstn_details(
        self, gstin: str, auth_token: str, target_gstin: str,
    ) -> Dict[str, Any]:
        """Get GSTN details for a given GSTIN via e-Invoice portal."""
        headers = self._auth_headers(gstin, auth_token)
        return await self._request(
            "GET",
            "/einvoice/type/GSTNDETAILS/version/V1_03",
            headers=headers,
            params=self._email_params(param1=target_gstin),
        )
