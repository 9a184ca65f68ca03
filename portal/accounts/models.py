"""Portal users and audit log entries, as served by the backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.db import models

from offers.models import parse_api_datetime


class Role(models.TextChoices):
    ADMIN = "admin", "Administrator"
    HR = "rh", "HR Manager"


@dataclass
class User:
    id: int | None
    name: str
    email: str
    role: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "User":
        user_id = data.get("id")
        return cls(
            id=int(user_id) if user_id not in (None, "") else None,
            name=data.get("name") or "",
            email=data.get("email") or "",
            role=data.get("role") or "",
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_hr(self) -> bool:
        return self.role == Role.HR

    @property
    def role_label(self) -> str:
        if self.role in Role.values:
            return Role(self.role).label
        return self.role

    @property
    def dashboard_url_name(self) -> str:
        return "admin_dashboard" if self.is_admin else "hr_dashboard"

    def __str__(self):
        return self.name or self.email


@dataclass
class LogEntry:
    id: int
    message: str
    created_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "LogEntry":
        return cls(
            id=int(data["id"]),
            message=data.get("message") or "",
            created_at=parse_api_datetime(data.get("created_at")),
        )
