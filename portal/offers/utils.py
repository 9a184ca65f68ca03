from django.http import Http404

from portal.api_client import APIError


def get_offer_or_404(api, offer_id):
    """Fetch one offer; a backend 404 becomes an Http404, other failures propagate."""
    try:
        return api.get_offer(offer_id)
    except APIError as exc:
        if exc.is_not_found:
            raise Http404("Offer not found") from exc
        raise


def find_application(api, application_id):
    """Look an application up in the backend's application list."""
    for application in api.list_applications():
        if application.id == application_id:
            return application
    raise Http404("Application not found")
