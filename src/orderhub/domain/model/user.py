"""User record as confirmed by the identity collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserRecord:

    id: str
    phone: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
