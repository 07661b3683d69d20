"""Error log shipping to the authorization server.

Reporting is best effort: a failure to ship a log entry is logged locally
and swallowed, so it can never hide the error being reported.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import time
import traceback
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import httpx

from dauth.config import PortalSettings

logger = logging.getLogger(__name__)

API_TOKEN_ISSUER = "dauth-admin-portal"
API_TOKEN_LIFETIME = 60 * 60


def generate_api_token(secret: str, now: float | None = None) -> str:
    """Build the ``x-api-token`` value accepted by the log endpoint.

    Format is ``<base64 payload>.<hex HMAC-SHA256 of the base64 payload>``.
    """
    issued_at = int(now if now is not None else time.time())
    payload = {
        "iat": issued_at,
        "exp": issued_at + API_TOKEN_LIFETIME,
        "iss": API_TOKEN_ISSUER,
    }
    payload_b64 = base64.b64encode(
        json.dumps(payload, separators=(",", ":")).encode("utf-8")
    ).decode("ascii")
    signature = hmac.new(
        secret.encode("utf-8"), payload_b64.encode("ascii"), hashlib.sha256
    ).hexdigest()
    return f"{payload_b64}.{signature}"


def format_error(err: Any) -> str:
    """Render an error-ish value as text for a log entry."""
    if not err:
        return ""
    if isinstance(err, BaseException):
        text = f"{type(err).__name__}: {err}"
        if err.__traceback__ is not None:
            text += "\n" + "".join(traceback.format_tb(err.__traceback__))
        return text
    if isinstance(err, (Mapping, list, tuple)):
        try:
            return json.dumps(err)
        except (TypeError, ValueError):
            return str(err)
    return str(err)


def remove_none(value: Any) -> Any:
    """Recursively drop None values from dicts and lists."""
    if isinstance(value, Mapping):
        return {k: remove_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [remove_none(v) for v in value if v is not None]
    return value


class ErrorReporter:
    """Posts structured error entries to the log endpoint."""

    def __init__(
        self,
        log_url: str | None,
        api_token_secret: str = "",
        app_name: str = "DAuth-admin-portal",
        source: str = "python",
        timeout: float = 30.0,
    ):
        self.log_url = log_url
        self.api_token_secret = api_token_secret
        self.app_name = app_name
        self.source = source
        self._http_client = httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: PortalSettings) -> ErrorReporter:
        return cls(
            f"{settings.error_log_url}/logs" if settings.error_log_url else None,
            api_token_secret=settings.api_token_secret,
            app_name=settings.app_name,
            timeout=settings.http_timeout,
        )

    def build_payload(
        self,
        endpoint: str = "",
        message: str = "",
        error: Any = "",
        user_id: str | None = None,
        level: str = "error",
        metadata: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        payload = {
            "source": self.source,
            "apps": self.app_name,
            "level": level,
            "endpoint": endpoint or "",
            "message": message or "",
            "error": format_error(error),
            "user_id": user_id or None,
            "occurred_at_utc": now.isoformat().replace("+00:00", "Z"),
            "occurred_at_unix_ms": int(now.timestamp() * 1000),
            "metadata": {"runtime": "python", **(metadata or {})},
        }
        return remove_none(payload)

    async def report(
        self,
        endpoint: str = "",
        message: str = "",
        error: Any = "",
        user_id: str | None = None,
        level: str = "error",
        metadata: Mapping[str, Any] | None = None,
    ) -> bool:
        """Ship one error entry.

        Returns:
            True if the endpoint accepted the entry, False otherwise
        """
        if not self.log_url:
            return False

        try:
            payload = self.build_payload(
                endpoint, message, error, user_id, level, metadata
            )
            headers = {"Content-Type": "application/json"}
            if self.api_token_secret:
                headers["x-api-token"] = generate_api_token(self.api_token_secret)

            response = await self._http_client.post(
                self.log_url, json=payload, headers=headers
            )
            return 200 <= response.status_code < 300
        except Exception as e:
            logger.debug(f"Error report not delivered: {e}")
            return False

    async def close(self) -> None:
        await self._http_client.aclose()
