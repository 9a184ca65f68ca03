"""Offer and application list filtering.

Lists come straight from the backend and are filtered per request; every
predicate is optional and they combine with AND.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable
from urllib.parse import urlencode

from django.utils import timezone

from .constants import OfferStatus
from .models import Application, Offer

# Query-string values that switch the status filter off.
ALL_STATUSES = {"", "all"}


def normalize_space(v: str | None) -> str:
    return re.sub(r"\s+", " ", (v or "")).strip()


def _contains(haystack: str | None, needle: str) -> bool:
    return needle in (haystack or "").lower()


@dataclass
class OfferFilters:
    search: str = ""
    offer_type: str = ""
    country: str = ""
    department: str = ""
    status: str = OfferStatus.ONGOING

    @classmethod
    def from_query(cls, params) -> "OfferFilters":
        offer_type = normalize_space(params.get("type"))

        if "status" in params:
            status = normalize_space(params.get("status")).lower()
            if status in ALL_STATUSES:
                status = ""
            elif status not in OfferStatus.values:
                status = OfferStatus.ONGOING
        else:
            status = OfferStatus.ONGOING

        return cls(
            search=normalize_space(params.get("search")),
            offer_type=offer_type,
            country=normalize_space(params.get("country")),
            department=normalize_space(params.get("department")),
            status=status,
        )

    @property
    def is_default(self) -> bool:
        return not (self.search or self.offer_type or self.country or self.department) and (
            self.status == OfferStatus.ONGOING
        )

    def as_query(self) -> str:
        """Query string reproducing these filters (used by pagination links)."""
        params = {
            "search": self.search,
            "type": self.offer_type,
            "country": self.country,
            "department": self.department,
        }
        query = {k: v for k, v in params.items() if v}
        query["status"] = self.status or "all"
        return urlencode(query)


@dataclass
class ApplicationFilters:
    search: str = ""
    offer_type: str = ""
    department: str = ""
    applicant_country: str = ""

    @classmethod
    def from_query(cls, params) -> "ApplicationFilters":
        offer_type = normalize_space(params.get("offer_type"))
        return cls(
            search=normalize_space(params.get("app_search")),
            offer_type=offer_type,
            department=normalize_space(params.get("app_department")),
            applicant_country=normalize_space(params.get("applicant_country")),
        )

    @property
    def is_active(self) -> bool:
        return bool(self.search or self.offer_type or self.department or self.applicant_country)


def offer_status(offer: Offer, today: date | None = None) -> str:
    return offer.status(today)


def filter_offers(
    offers: Iterable[Offer],
    *,
    search: str = "",
    offer_type: str = "",
    country: str = "",
    department: str = "",
    status: str = "",
    today: date | None = None,
) -> list[Offer]:
    today = today or timezone.localdate()
    needle = (search or "").lower()

    out = []
    for offer in offers:
        if needle and not (_contains(offer.title, needle) or _contains(offer.description, needle)):
            continue
        if offer_type and offer.offer_type != offer_type:
            continue
        if country and offer.country != country:
            continue
        if department and offer.department != department:
            continue
        if status and offer_status(offer, today) != status:
            continue
        out.append(offer)
    return out


def apply_offer_filters(offers: Iterable[Offer], filters: OfferFilters, today: date | None = None) -> list[Offer]:
    return filter_offers(
        offers,
        search=filters.search,
        offer_type=filters.offer_type,
        country=filters.country,
        department=filters.department,
        status=filters.status,
        today=today,
    )


def filter_applications(
    applications: Iterable[Application],
    *,
    search: str = "",
    offer_type: str = "",
    department: str = "",
    applicant_country: str = "",
) -> list[Application]:
    needle = (search or "").lower()

    out = []
    for app in applications:
        if needle and not (
            _contains(app.full_name, needle)
            or _contains(app.email, needle)
            or _contains(app.offer_title, needle)
        ):
            continue
        if offer_type and app.offer_type != offer_type:
            continue
        if department and app.offer_department != department:
            continue
        if applicant_country and app.applicant_country != applicant_country:
            continue
        out.append(app)
    return out


def apply_application_filters(applications: Iterable[Application], filters: ApplicationFilters) -> list[Application]:
    return filter_applications(
        applications,
        search=filters.search,
        offer_type=filters.offer_type,
        department=filters.department,
        applicant_country=filters.applicant_country,
    )


def distinct_values(items: Iterable, attr: str) -> list[str]:
    """Sorted distinct non-empty values of `attr` (dropdown choices)."""
    return sorted({getattr(item, attr) for item in items if getattr(item, attr, None)})
