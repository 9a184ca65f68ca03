import logging

from django.conf import settings
from django.contrib import messages
from django.core.paginator import Paginator
from django.shortcuts import render, redirect
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_POST

from accounts.decorators import hr_required
from portal.api_client import APIError, PortalAPIClient

from .constants import OfferStatus, offer_type_info
from .filters import (
    ApplicationFilters,
    OfferFilters,
    apply_application_filters,
    apply_offer_filters,
    distinct_values,
)
from .forms import ApplicationForm, OfferForm
from .utils import find_application, get_offer_or_404

logger = logging.getLogger(__name__)


def _paginate(request, items, per_page=10):
    paginator = Paginator(items, per_page)
    page_number = request.GET.get("page") or 1
    page_obj = paginator.get_page(page_number)
    return page_obj


def _offer_filter_context(offers, filters):
    return {
        "filters": filters,
        "filter_query": filters.as_query(),
        "type_choices": [(t, offer_type_info(t)["name"]) for t in distinct_values(offers, "offer_type")],
        "countries": distinct_values(offers, "country"),
        "departments": distinct_values(offers, "department"),
        "status_choices": OfferStatus.choices,
    }


# -----------------------------
# Public: Offer browsing + filters
# -----------------------------
def home(request):
    if request.portal_user is not None:
        return redirect(request.portal_user.dashboard_url_name)

    offers = []
    try:
        offers = PortalAPIClient().list_offers()
    except APIError as exc:
        logger.error("Offer list unavailable: %s", exc.message)
        messages.error(request, exc.message)

    filters = OfferFilters.from_query(request.GET)
    filtered = apply_offer_filters(offers, filters, today=timezone.localdate())
    page_obj = _paginate(request, filtered, per_page=settings.OFFERS_PER_PAGE)

    ctx = {
        "page_obj": page_obj,
        "offers": list(page_obj.object_list),
        "total_count": len(offers),
        "filtered_count": len(filtered),
        **_offer_filter_context(offers, filters),
    }
    return render(request, "offers/home.html", ctx)


def about(request):
    return render(request, "about.html")


def offer_detail(request, offer_id):
    try:
        offer = get_offer_or_404(PortalAPIClient(), offer_id)
    except APIError as exc:
        messages.error(request, exc.message)
        return redirect("home")
    return render(request, "offers/offer_detail.html", {"offer": offer})


# -----------------------------
# Public: Apply
# -----------------------------
def apply_offer(request, offer_id):
    api = PortalAPIClient()
    try:
        offer = get_offer_or_404(api, offer_id)
    except APIError as exc:
        messages.error(request, exc.message)
        return redirect("home")

    if offer.is_closed():
        messages.error(request, "This offer is closed and no longer accepts applications.")
        return redirect("offer_detail", offer_id=offer.id)

    if request.method == "POST":
        form = ApplicationForm(request.POST, request.FILES, offer_type=offer.offer_type)
        if form.is_valid():
            try:
                api.apply(offer.id, form.identity_payload(), form.documents())
            except APIError as exc:
                form.add_error(None, exc.message)
            else:
                logger.info(
                    "Application submitted: offer_id=%s email=%s",
                    offer.id,
                    form.cleaned_data["email"],
                )
                messages.success(request, "Application Submitted! Thank you for applying.")
                return redirect("offer_detail", offer_id=offer.id)
        else:
            logger.info("Application rejected by validation: offer_id=%s errors=%s", offer.id, form.errors.as_json())
    else:
        form = ApplicationForm(offer_type=offer.offer_type)

    return render(request, "offers/apply.html", {"form": form, "offer": offer})


# -----------------------------
# HR: dashboard
# -----------------------------
@hr_required
def hr_dashboard(request):
    tab = request.GET.get("tab") or "offers"
    if tab not in {"offers", "applications"}:
        tab = "offers"

    api = PortalAPIClient.for_request(request)
    offers, applications = [], []
    try:
        offers = api.list_offers()
    except APIError as exc:
        messages.error(request, exc.message)
    try:
        applications = api.list_applications()
    except APIError as exc:
        messages.error(request, exc.message)

    offer_filters = OfferFilters.from_query(request.GET)
    app_filters = ApplicationFilters.from_query(request.GET)
    filtered_offers = apply_offer_filters(offers, offer_filters, today=timezone.localdate())
    filtered_apps = apply_application_filters(applications, app_filters)

    ctx = {
        "tab": tab,
        "offers": filtered_offers,
        "applications": filtered_apps,
        "total_offers": len(offers),
        "total_applications": len(applications),
        "app_filters": app_filters,
        "app_type_choices": [
            (t, offer_type_info(t)["name"]) for t in distinct_values(applications, "offer_type")
        ],
        "app_departments": distinct_values(applications, "offer_department"),
        "app_countries": distinct_values(applications, "applicant_country"),
        **_offer_filter_context(offers, offer_filters),
    }
    return render(request, "offers/hr_dashboard.html", ctx)


# -----------------------------
# HR: Create/Edit/Delete offers
# -----------------------------
@hr_required
def offer_create(request):
    if request.method == "POST":
        form = OfferForm(request.POST, request.FILES)
        if form.is_valid():
            try:
                PortalAPIClient.for_request(request).save_offer(form.api_payload(), tdr=form.cleaned_data.get("tdr"))
            except APIError as exc:
                form.add_error(None, exc.message)
            else:
                messages.success(request, "Offer published.")
                logger.info("Offer created: title=%s by=%s", form.cleaned_data["title"], request.portal_user.email)
                return redirect("hr_dashboard")
    else:
        form = OfferForm()

    return render(request, "offers/offer_form.html", {"form": form})


@hr_required
def offer_edit(request, offer_id):
    api = PortalAPIClient.for_request(request)
    try:
        offer = get_offer_or_404(api, offer_id)
    except APIError as exc:
        messages.error(request, exc.message)
        return redirect("hr_dashboard")

    if request.method == "POST":
        form = OfferForm(request.POST, request.FILES)
        if form.is_valid():
            try:
                api.save_offer(form.api_payload(), tdr=form.cleaned_data.get("tdr"), offer_id=offer.id)
            except APIError as exc:
                form.add_error(None, exc.message)
            else:
                messages.success(request, "Offer updated.")
                logger.info("Offer updated: offer_id=%s by=%s", offer.id, request.portal_user.email)
                return redirect("hr_dashboard")
    else:
        form = OfferForm(initial=OfferForm.initial_from_offer(offer))

    return render(request, "offers/offer_form.html", {"form": form, "offer": offer})


@hr_required
@require_POST
def offer_delete(request, offer_id):
    try:
        PortalAPIClient.for_request(request).delete_offer(offer_id)
    except APIError as exc:
        messages.error(request, exc.message)
    else:
        messages.info(request, "Offer deleted.")
        logger.info("Offer deleted: offer_id=%s by=%s", offer_id, request.portal_user.email)
    return redirect("hr_dashboard")


# -----------------------------
# HR: applications
# -----------------------------
@hr_required
def application_detail(request, application_id):
    try:
        application = find_application(PortalAPIClient.for_request(request), application_id)
    except APIError as exc:
        messages.error(request, exc.message)
        return redirect(f"{reverse('hr_dashboard')}?tab=applications")
    return render(request, "offers/application_detail.html", {"application": application})


@hr_required
@require_POST
def application_delete(request, application_id):
    try:
        PortalAPIClient.for_request(request).delete_application(application_id)
    except APIError as exc:
        messages.error(request, exc.message)
    else:
        messages.info(request, "Application deleted.")
        logger.info("Application deleted: app_id=%s by=%s", application_id, request.portal_user.email)
    return redirect(f"{reverse('hr_dashboard')}?tab=applications")
