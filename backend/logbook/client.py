# backend/logbook/client.py
import logging
from urllib.parse import quote

import httpx
from django.conf import settings

from .envelopes import error_message
from .exceptions import TransportError

logger = logging.getLogger(__name__)


class BackendClient:
    """Klien HTTP ke backend logbook. Tidak ada retry otomatis."""

    def __init__(self, base_url: str, token: str = "", timeout: float = 10.0, transport=None):
        headers = {
            "Accept": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, json=None):
        try:
            response = self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            logger.error(f"Request ke backend logbook timeout: {method} {path}: {e}")
            raise TransportError("Server logbook tidak merespons. Silakan coba lagi.") from e
        except httpx.HTTPError as e:
            logger.error(f"Koneksi ke backend logbook gagal: {method} {path}: {e}")
            raise TransportError() from e

        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = response.text

        if response.is_error:
            message = error_message(payload) or response.reason_phrase or "Request gagal"
            logger.error(f"Backend logbook error {response.status_code} pada {method} {path}: {message}")
            raise TransportError(message, status_code=response.status_code)
        return payload

    # =========================
    # Logbook & entri
    # =========================

    def fetch_my_logbook(self):
        return self._request("GET", "/api/logbook/me")

    def fetch_logbook(self, logbook_id):
        return self._request("GET", f"/api/logbook/{quote(str(logbook_id))}")

    def fetch_week_entries(self, week: int, logbook_id=None):
        if logbook_id:
            return self._request("GET", f"/api/logbook/{quote(str(logbook_id))}/entries/week/{int(week)}")
        return self._request("GET", f"/api/logbook/entries/week/{int(week)}")

    def save_entry(self, week: int, day_number: int, activity: str, entry_date=None, hours=None):
        body = {"activity": activity, "week": int(week), "day": int(day_number)}
        if entry_date:
            body["entry_date"] = str(entry_date)
        if hours is not None:
            body["hours"] = hours
        return self._request("POST", "/api/logbook/entries", json=body)

    def approve_entry(self, entry_id):
        return self._request("POST", f"/api/logbook/entries/approve/{quote(str(entry_id))}")

    # =========================
    # Pembimbing & asesor
    # =========================

    def send_supervisor_request(self, supervisor_id, message: str):
        return self._request(
            "POST",
            "/api/logbook/supervisor-request",
            json={"supervisor_id": supervisor_id, "message": message},
        )

    def fetch_supervisor_requests(self, status=None):
        if status:
            return self._request("GET", f"/api/logbook/supervisor-request/{quote(str(status))}")
        return self._request("GET", "/api/logbook/supervisor-request")

    def update_supervisor_request(self, request_id, status: str):
        return self._request(
            "PUT",
            f"/api/logbook/supervisor-request/{quote(str(request_id))}",
            json={"status": status},
        )

    def submit_assessment(self, logbook_id, payload: dict):
        return self._request("POST", f"/api/logbook/{quote(str(logbook_id))}/assess", json=payload)

    def fetch_assessor_logbooks(self, assessor_id):
        return self._request("GET", f"/api/assessors/{quote(str(assessor_id))}/logbooks")


def get_backend_client():
    """Klien dari settings, atau ``None`` jika backend tidak dikonfigurasi."""
    base_url = getattr(settings, "LOGBOOK_BACKEND_URL", "")
    if not base_url:
        return None
    return BackendClient(
        base_url,
        token=getattr(settings, "LOGBOOK_BACKEND_TOKEN", ""),
        timeout=getattr(settings, "LOGBOOK_BACKEND_TIMEOUT", 10.0),
    )
