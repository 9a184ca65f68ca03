"""HTTP client for the portal REST backend.

Every view talks to the backend through `PortalAPIClient`. Failures (network
errors and non-2xx responses) are raised as `APIError` carrying a message that
can be shown to the user as-is.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from django.conf import settings

from accounts.models import LogEntry, User
from offers.models import Application, Offer

logger = logging.getLogger(__name__)

CONNECTION_ERROR = "Failed to connect to server"


class APIError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


def _error_message(response: requests.Response, default: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        return data.get("error") or data.get("detail") or default
    return default


def _upload(uploaded) -> tuple:
    """Turn a Django UploadedFile into a requests multipart tuple."""
    uploaded.seek(0)
    return (
        uploaded.name,
        uploaded,
        getattr(uploaded, "content_type", None) or "application/pdf",
    )


class PortalAPIClient:
    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.token = token
        self.base_url = (base_url or settings.PORTAL_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.PORTAL_API_TIMEOUT
        self.session = session or requests.Session()

    @classmethod
    def for_request(cls, request) -> "PortalAPIClient":
        return cls(token=request.session.get(settings.SESSION_TOKEN_KEY))

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        error: str,
        offline_error: str | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.session.request(
                method,
                self.url(path),
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as exc:
            logger.warning("Backend unreachable: %s %s (%s)", method, path, exc)
            raise APIError(offline_error or error) from exc

        if not response.ok:
            message = _error_message(response, error)
            logger.warning(
                "Backend error: %s %s status=%s error=%s",
                method,
                path,
                response.status_code,
                message,
            )
            raise APIError(message, response.status_code)
        return response

    def _json(self, response: requests.Response, error: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise APIError(error, response.status_code) from exc

    def _json_list(self, response: requests.Response, error: str) -> list:
        data = self._json(response, error)
        if not isinstance(data, list):
            logger.warning("Backend returned %s where a list was expected: %s", type(data).__name__, response.url)
            raise APIError(error, response.status_code)
        return data

    # -----------------------------
    # Authentication
    # -----------------------------
    def login(self, email: str, password: str) -> dict[str, Any]:
        """Return the backend payload: {"token": ..., "user": {...}}."""
        response = self._request(
            "POST",
            "/login",
            json={"email": email, "password": password},
            error="Login failed",
            offline_error=CONNECTION_ERROR,
        )
        data = self._json(response, "Login failed")
        if not isinstance(data, dict) or not data.get("token"):
            raise APIError("Login failed", response.status_code)
        return data

    # -----------------------------
    # Offers
    # -----------------------------
    def list_offers(self) -> list[Offer]:
        response = self._request("GET", "/offers", error="Failed to fetch offers")
        return [Offer.from_api(item) for item in self._json_list(response, "Failed to fetch offers")]

    def get_offer(self, offer_id: int) -> Offer:
        response = self._request("GET", f"/offers/{offer_id}", error="Offer not found")
        data = self._json(response, "Offer not found")
        if not isinstance(data, dict):
            raise APIError("Offer not found", response.status_code)
        return Offer.from_api(data)

    def save_offer(self, data: dict[str, Any], *, tdr=None, offer_id: int | None = None) -> None:
        files = {"tdr": _upload(tdr)} if tdr else None
        method, path = ("PUT", f"/offers/{offer_id}") if offer_id else ("POST", "/offers")
        self._request(method, path, data=data, files=files, error="Failed to save offer")

    def delete_offer(self, offer_id: int) -> None:
        self._request("DELETE", f"/offers/{offer_id}", error="Failed to delete offer")

    # -----------------------------
    # Applications
    # -----------------------------
    def apply(self, offer_id: int, data: dict[str, Any], documents: dict[str, Any]) -> None:
        payload = {"offer_id": str(offer_id), **data}
        files = {key: _upload(f) for key, f in documents.items() if f}
        self._request(
            "POST",
            "/apply",
            data=payload,
            files=files,
            error="Application failed",
            offline_error="Failed to submit application",
        )

    def list_applications(self) -> list[Application]:
        response = self._request("GET", "/applications", error="Failed to fetch applications")
        return [Application.from_api(item) for item in self._json_list(response, "Failed to fetch applications")]

    def delete_application(self, application_id: int) -> None:
        self._request("DELETE", f"/applications/{application_id}", error="Failed to delete application")

    # -----------------------------
    # Users + logs (admin)
    # -----------------------------
    def list_users(self) -> list[User]:
        response = self._request("GET", "/users", error="Failed to fetch users")
        return [User.from_api(item) for item in self._json_list(response, "Failed to fetch users")]

    def save_user(self, data: dict[str, Any], *, user_id: int | None = None) -> None:
        method, path = ("PUT", f"/users/{user_id}") if user_id else ("POST", "/users")
        self._request(method, path, json=data, error="Failed to save user")

    def delete_user(self, user_id: int) -> None:
        self._request("DELETE", f"/users/{user_id}", error="Failed to delete user")

    def list_logs(self) -> list[LogEntry]:
        response = self._request("GET", "/logs", error="Failed to fetch logs")
        return [LogEntry.from_api(item) for item in self._json_list(response, "Failed to fetch logs")]

    # -----------------------------
    # Uploaded documents
    # -----------------------------
    def fetch_document(self, path: str) -> tuple[bytes, str]:
        """Download a stored document by the relative URL the backend gave us."""
        response = self._request("GET", path, error="Failed to download document")
        content_type = response.headers.get("Content-Type") or "application/pdf"
        return response.content, content_type
