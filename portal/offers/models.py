"""Offer and application records as served by the portal backend.

Nothing here is stored locally; the records are parsed from the backend's
JSON and handed to views and templates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone as dt_timezone
from typing import Any

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .constants import DOCUMENTS, OfferStatus, offer_type_info, requires_additional_documents


def parse_api_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return parse_date(str(value).strip()[:10])
    except ValueError:
        return None


def parse_api_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    raw = str(value).strip().replace(" ", "T", 1)
    try:
        parsed = parse_datetime(raw)
    except ValueError:
        return None
    if parsed is None:
        day = parse_api_date(raw)
        if day is None:
            return None
        parsed = datetime(day.year, day.month, day.day)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


@dataclass
class Offer:
    id: int
    offer_type: str
    title: str
    description: str = ""
    country: str = ""
    project: str = ""
    department: str = ""
    reference: str = ""
    deadline: date | None = None
    created_at: datetime | None = None
    tdr_filename: str | None = None
    tdr_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Offer":
        return cls(
            id=int(data["id"]),
            offer_type=data.get("type") or "",
            title=data.get("title") or "",
            description=data.get("description") or "",
            country=data.get("country") or "",
            project=data.get("projet") or "",
            department=data.get("department") or "",
            reference=data.get("reference") or "",
            deadline=parse_api_date(data.get("deadline")),
            created_at=parse_api_datetime(data.get("created_at")),
            tdr_filename=data.get("tdr_filename") or None,
            tdr_url=data.get("tdr_url") or None,
        )

    def status(self, today: date | None = None) -> str:
        """Closed from the deadline day on; no deadline means ongoing."""
        today = today or timezone.localdate()
        if self.deadline is not None and self.deadline <= today:
            return OfferStatus.CLOSED
        return OfferStatus.ONGOING

    def is_closed(self, today: date | None = None) -> bool:
        return self.status(today) == OfferStatus.CLOSED

    @property
    def type_info(self) -> dict[str, str]:
        return offer_type_info(self.offer_type)

    @property
    def requires_additional_documents(self) -> bool:
        return requires_additional_documents(self.offer_type)

    def __str__(self):
        return self.title


@dataclass
class Document:
    key: str
    label: str
    url: str
    filename: str


@dataclass
class Application:
    id: int
    offer_id: int | None
    full_name: str
    email: str = ""
    phone: str = ""
    applicant_country: str = ""
    created_at: datetime | None = None
    offer_title: str = ""
    offer_type: str = ""
    offer_department: str = ""
    documents: list[Document] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Application":
        documents = []
        for key, label in DOCUMENTS:
            url = data.get(f"{key}_url")
            if not url:
                continue
            documents.append(
                Document(
                    key=key,
                    label=label,
                    url=url,
                    filename=data.get(f"{key}_filename") or f"{key}.pdf",
                )
            )
        offer_id = data.get("offer_id")
        return cls(
            id=int(data["id"]),
            offer_id=int(offer_id) if offer_id not in (None, "") else None,
            full_name=data.get("full_name") or "",
            email=data.get("email") or "",
            phone=data.get("tel_number") or "",
            applicant_country=data.get("applicant_country") or "",
            created_at=parse_api_datetime(data.get("created_at")),
            offer_title=data.get("offer_title") or "",
            offer_type=data.get("offer_type") or "",
            offer_department=data.get("offer_department") or "",
            documents=documents,
        )

    def document(self, key: str) -> Document | None:
        for doc in self.documents:
            if doc.key == key:
                return doc
        return None

    @property
    def offer_type_info(self) -> dict[str, str]:
        return offer_type_info(self.offer_type)

    def __str__(self):
        return f"{self.full_name} → {self.offer_title}"
