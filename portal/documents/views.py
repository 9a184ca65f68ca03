import logging

from django.contrib import messages
from django.http import Http404, HttpResponse
from django.shortcuts import redirect
from django.urls import reverse
from django.utils.http import content_disposition_header

from accounts.decorators import hr_required
from offers.constants import DOCUMENT_LABELS
from offers.utils import find_application, get_offer_or_404
from portal.api_client import APIError, PortalAPIClient

logger = logging.getLogger(__name__)


def _attachment(content: bytes, content_type: str, filename: str) -> HttpResponse:
    response = HttpResponse(content, content_type=content_type)
    response["Content-Disposition"] = content_disposition_header(True, filename)
    return response


def offer_tdr(request, offer_id):
    """Public: download an offer's terms of reference."""
    api = PortalAPIClient()
    try:
        offer = get_offer_or_404(api, offer_id)
        if not offer.tdr_url:
            raise Http404("This offer has no TDR")
        content, content_type = api.fetch_document(offer.tdr_url)
    except APIError as exc:
        logger.warning("TDR download failed: offer_id=%s error=%s", offer_id, exc.message)
        messages.error(request, "Failed to download TDR")
        return redirect("offer_detail", offer_id=offer_id)

    return _attachment(content, content_type, f"TDR_{offer.title}.pdf")


@hr_required
def application_document(request, application_id, document):
    """HR: download one of the files attached to an application."""
    if document not in DOCUMENT_LABELS:
        raise Http404("Unknown document")

    api = PortalAPIClient.for_request(request)
    try:
        application = find_application(api, application_id)
        doc = application.document(document)
        if doc is None:
            raise Http404("Document not attached")
        content, content_type = api.fetch_document(doc.url)
    except APIError as exc:
        logger.warning(
            "Document download failed: app_id=%s document=%s error=%s",
            application_id,
            document,
            exc.message,
        )
        messages.error(request, "Failed to download document")
        return redirect(reverse("application_detail", args=[application_id]))

    logger.info("Document downloaded: app_id=%s document=%s by=%s", application_id, document, request.portal_user.email)
    return _attachment(content, content_type, doc.filename)
