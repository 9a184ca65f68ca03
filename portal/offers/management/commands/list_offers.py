from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from offers.constants import OfferStatus
from offers.filters import filter_offers
from portal.api_client import APIError, PortalAPIClient


class Command(BaseCommand):
    help = "List offers from the portal backend, filtered like the public offer page."

    def add_arguments(self, parser):
        parser.add_argument("--search", type=str, default="", help="Text to look for in title or description.")
        parser.add_argument("--type", dest="offer_type", default="", help="Offer type, e.g. candidature.")
        parser.add_argument("--country", type=str, default="")
        parser.add_argument("--department", type=str, default="")
        parser.add_argument(
            "--status",
            choices=[*OfferStatus.values, "all"],
            default=OfferStatus.ONGOING,
        )

    def handle(self, *args, **opts):
        try:
            offers = PortalAPIClient().list_offers()
        except APIError as exc:
            raise CommandError(exc.message) from exc

        today = timezone.localdate()
        status = "" if opts["status"] == "all" else opts["status"]
        matches = filter_offers(
            offers,
            search=opts["search"],
            offer_type=opts["offer_type"],
            country=opts["country"],
            department=opts["department"],
            status=status,
            today=today,
        )

        for offer in matches:
            deadline = offer.deadline.isoformat() if offer.deadline else "-"
            self.stdout.write(
                f"{offer.reference or '-'} | {offer.title} | {offer.type_info['name']} | "
                f"{offer.country} | {offer.department} | {deadline} | {offer.status(today)}"
            )
        self.stdout.write(self.style.SUCCESS(f"{len(matches)} of {len(offers)} offers"))
