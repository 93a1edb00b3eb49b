"""httpx implementation of IdentityClient (``GET /users/{id}``)."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from urllib.parse import quote

import httpx

from orderhub.domain.exceptions import IdentityNotFoundError, IdentityUnavailableError
from orderhub.domain.gateway.identity_client import IdentityClient
from orderhub.domain.model.user import UserRecord

logger = logging.getLogger(__name__)

# Go services send RFC 3339 with up to nine fractional digits.
_FRACTION = re.compile(r"\.(\d+)")


class HttpIdentityClient(IdentityClient):

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    @classmethod
    def from_url(cls, base_url: str, timeout: float = 10.0) -> HttpIdentityClient:
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def resolve(self, user_id: str) -> UserRecord:
        try:
            response = self._client.get(f"/users/{quote(user_id, safe='')}")
        except httpx.RequestError as exc:
            logger.exception("Identity service unreachable while resolving user %s", user_id)
            raise IdentityUnavailableError(f"Identity service is unavailable: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            raise IdentityNotFoundError(user_id)
        if not response.is_success:
            logger.error(
                "Identity service answered %s for user %s", response.status_code, user_id
            )
            raise IdentityUnavailableError(
                f"Identity service answered status {response.status_code}"
            )

        try:
            return _to_user(response.json())
        except (ValueError, KeyError, TypeError) as exc:
            raise IdentityUnavailableError(
                f"Identity service sent an unreadable user record: {exc}"
            ) from exc

    def close(self) -> None:
        self._client.close()


def _six_digit_fraction(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def _parse_timestamp(raw: object) -> datetime | None:
    """Best-effort ISO 8601 parse; only the user id matters to callers."""
    if not isinstance(raw, str) or not raw:
        return None
    text = _FRACTION.sub(_six_digit_fraction, raw.replace("Z", "+00:00"), count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning("Ignoring unreadable identity timestamp %r", raw)
        return None


def _to_user(raw: dict) -> UserRecord:
    return UserRecord(
        id=str(raw["id"]),
        phone=raw.get("phone") or raw.get("handle") or "",
        created_at=_parse_timestamp(raw.get("created_at")),
        updated_at=_parse_timestamp(raw.get("updated_at")),
    )
