"""Async client for the remote record store.

The record store is a deployed spreadsheet script reachable at a
single URL.  Reads are ``GET`` requests selecting an ``action`` via the
query string; writes are ``POST`` requests whose JSON body carries the
``action`` and the payload, sent as ``text/plain``.  Every reply is a
JSON object with a ``status`` of ``success`` or ``error``.

Rows are normalised into ``ServiceRecord`` right here, so nothing
loosely typed travels further into the application.  No retries are
attempted: every failure surfaces as ``TransportError`` (or
``RemoteValidationError`` when the script rejects a write) and the
caller decides what to do.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Type
from urllib.parse import urlsplit

import httpx
from pydantic import ValidationError as PydanticValidationError

from service_desk_api.app.core.config import RecordStoreEndpoint
from service_desk_api.app.core.exceptions import RemoteValidationError, TransportError
from service_desk_api.app.schemas.service_record import ServiceRecord, leading_int


logger = logging.getLogger(__name__)


class RecordStore:
    """Client for the record store endpoint.

    Args:
        endpoint: Where the store lives and how long to wait for it.
        client: Optional ``httpx.AsyncClient``.  Tests pass one built on
            ``httpx.MockTransport``; otherwise one is created and owned
            by this instance.
    """

    def __init__(self, endpoint: RecordStoreEndpoint, client: Optional[httpx.AsyncClient] = None) -> None:
        self.endpoint = endpoint
        # The script host answers with a redirect to the content server.
        self._client = client or httpx.AsyncClient(timeout=endpoint.timeout, follow_redirects=True)
        self._owns_client = client is None

    @property
    def host(self) -> str:
        return urlsplit(self.endpoint.url).netloc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Low level HTTP helper
    # ------------------------------------------------------------------
    async def _request(
        self,
        action: str,
        method: str = "GET",
        payload: Optional[Dict[str, Any]] = None,
        error_cls: Type[TransportError] = TransportError,
    ) -> Dict[str, Any]:
        """Perform one call and return the decoded reply object.

        Raises:
            TransportError: the store was unreachable, answered with a
                non-success status, a non-JSON body or an unexpected shape.
            error_cls: the script answered ``{"status": "error"}``.
        """
        url = self.endpoint.url
        try:
            if method == "GET":
                params = {"action": action}
                for key, value in (payload or {}).items():
                    params[key] = str(value)
                logger.debug("GET %s action=%s", url, action)
                response = await self._client.get(url, params=params)
            else:
                body = json.dumps({"action": action, **(payload or {})})
                logger.debug("POST %s action=%s", url, action)
                response = await self._client.post(
                    url,
                    content=body.encode("utf-8"),
                    headers={"Content-Type": "text/plain;charset=utf-8"},
                )
        except httpx.HTTPError as exc:
            logger.error("Error during %s: %s", action, exc)
            raise TransportError(f"Record store unreachable during {action}: {exc}") from exc

        if not response.is_success:
            message = f"HTTP error! status: {response.status_code}, message: {response.text}"
            logger.error("Error during %s: %s", action, message)
            raise TransportError(message, status_code=response.status_code)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            if "text/html" in content_type:
                # Usually the host's sign-in page: the deployment is not public.
                message = (
                    "Received HTML instead of JSON. Check the record store deployment settings "
                    "and make sure it is accessible to anyone."
                )
            else:
                message = f"Expected JSON response, but received content type: {content_type or 'none'}"
            logger.error("Error during %s: %s", action, message)
            raise TransportError(message, status_code=response.status_code)

        try:
            result = response.json()
        except ValueError as exc:
            logger.error("Error during %s: malformed JSON", action)
            raise TransportError(f"Malformed JSON in {action} response", status_code=response.status_code) from exc
        if not isinstance(result, dict):
            raise TransportError(f"Unexpected {action} response shape", status_code=response.status_code)

        if result.get("status") == "error":
            message = result.get("message") or "An unknown error occurred in the script"
            logger.error("Error during %s: %s", action, message)
            raise error_cls(message, status_code=response.status_code)
        return result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    async def fetch_all(self) -> List[ServiceRecord]:
        """Return every record, normalised.

        Rows without a numeric slip number (a header row leaking
        through, blank rows) are dropped.
        """
        result = await self._request("getAllServices")
        rows = result.get("data")
        if not isinstance(rows, list):
            raise TransportError("Unexpected getAllServices response shape: 'data' is not a list")

        records: List[ServiceRecord] = []
        skipped = 0
        for row in rows:
            if not isinstance(row, dict) or leading_int(row.get("slipNo")) is None:
                skipped += 1
                continue
            try:
                records.append(ServiceRecord.model_validate(row))
            except PydanticValidationError as exc:
                skipped += 1
                logger.warning("Dropping malformed record row %r: %s", row.get("slipNo"), exc)
        if skipped:
            logger.debug("Skipped %d row(s) without a usable slip number", skipped)
        logger.info("Fetched %d service record(s)", len(records))
        return records

    async def fetch_last_sequence(self) -> int:
        result = await self._request("getLastSlip")
        last = leading_int(result.get("lastSlipNumber"))
        if last is None:
            raise TransportError("Unexpected getLastSlip response shape: no numeric lastSlipNumber")
        return last

    async def create(self, payload: Dict[str, Any]) -> str:
        """Submit a new record and return the identifier the store assigned."""
        result = await self._request("addService", "POST", payload, error_cls=RemoteValidationError)
        record_id = result.get("serviceId")
        if record_id in (None, ""):
            raise TransportError("Unexpected addService response shape: no serviceId")
        logger.info("Created service record %s (slip %s)", record_id, payload.get("slipNo"))
        return str(record_id)

    async def update(self, payload: Dict[str, Any]) -> None:
        await self._request("updateService", "POST", payload, error_cls=RemoteValidationError)
        logger.info("Updated service record %s", payload.get("serviceId"))
