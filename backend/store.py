"""Client data layer over the record service.

Read paths never raise: failures are logged and degrade to an empty result so
callers can render an empty state. Write paths raise ``SlipStoreError`` (or
``SlipConflictError`` for a duplicate SO number) so a form never reports a
save that did not happen.
"""
import logging
import os

import httpx

from normalize import make_id, normalize_entry
from schemas import WorkSlipEntry

logger = logging.getLogger(__name__)

API_BASE = os.getenv("WORKSLIP_API_URL", "http://localhost:3001")


class SlipStoreError(Exception):
    """The record service rejected a write or could not be reached."""


class SlipConflictError(SlipStoreError):
    """The SO number is already used by another record."""


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default
    detail = body.get("detail") or body.get("error")
    if isinstance(detail, list):
        # FastAPI validation errors
        return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail)
    return str(detail) if detail else default


class SlipClient:
    def __init__(
        self,
        base_url: str | None = None,
        http_client: httpx.Client | None = None,
        auth: tuple[str, str] | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = (base_url or API_BASE).rstrip("/")
        self.http_client = http_client
        self.auth = auth
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if self.auth is not None:
            kwargs.setdefault("auth", self.auth)
        if self.http_client is not None:
            return self.http_client.request(method, path, **kwargs)
        with httpx.Client(base_url=self.base_url, timeout=self.timeout) as client:
            return client.request(method, path, **kwargs)

    def _parse_written(self, response: httpx.Response) -> WorkSlipEntry:
        try:
            body = response.json()
        except ValueError as e:
            raise SlipStoreError(f"Unreadable response from record service ({response.status_code})") from e
        if not isinstance(body, dict):
            raise SlipStoreError(f"Unexpected response from record service ({response.status_code})")
        return normalize_entry(body)

    def get_slips(self) -> list[WorkSlipEntry]:
        try:
            response = self._request("GET", "/api/slips")
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch slips: {e}")
            return []
        if not response.is_success:
            logger.warning(f"Fetching slips returned {response.status_code}")
            return []
        try:
            parsed = response.json()
        except ValueError:
            return []
        slips = []
        for row in parsed if isinstance(parsed, list) else []:
            if not isinstance(row, dict):
                continue
            try:
                slips.append(normalize_entry(row))
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping unreadable slip {row.get('id')!r}: {e}")
        return slips

    def get_slip_by_id(self, slip_id: str) -> WorkSlipEntry | None:
        try:
            response = self._request("GET", f"/api/slips/{slip_id}")
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch slip {slip_id}: {e}")
            return None
        if not response.is_success:
            return None
        try:
            return normalize_entry(response.json())
        except (ValueError, TypeError, AttributeError):
            return None

    def save_slip(self, entry: WorkSlipEntry) -> WorkSlipEntry:
        """Create a record under a new slip id. Returns the stored record."""
        payload = normalize_entry(entry).model_copy(update={"id": make_id("slip"), "created_at": ""})
        try:
            response = self._request("POST", "/api/slips", json=payload.model_dump(by_alias=True))
        except httpx.HTTPError as e:
            raise SlipStoreError(f"Failed to save slip: {e}") from e

        if response.status_code == 409:
            raise SlipConflictError(_error_message(response, "SO number already exists"))
        if not response.is_success:
            raise SlipStoreError(_error_message(response, "Failed to save slip"))
        return self._parse_written(response)

    def update_slip(self, entry: WorkSlipEntry) -> WorkSlipEntry:
        """Replace a record in full. Last writer wins."""
        payload = normalize_entry(entry)
        try:
            response = self._request("PUT", f"/api/slips/{payload.id}", json=payload.model_dump(by_alias=True))
        except httpx.HTTPError as e:
            raise SlipStoreError(f"Failed to update slip: {e}") from e

        if response.status_code == 409:
            raise SlipConflictError(_error_message(response, "SO number already exists"))
        if not response.is_success:
            raise SlipStoreError(_error_message(response, "Failed to update slip"))
        return self._parse_written(response)

    def delete_slip(self, slip_id: str) -> bool:
        try:
            response = self._request("DELETE", f"/api/slips/{slip_id}")
        except httpx.HTTPError as e:
            logger.error(f"Failed to delete slip {slip_id}: {e}")
            return False
        return response.status_code == 204 or response.is_success
