from django.urls import path
from . import views

urlpatterns = [
    path("offer/<int:offer_id>/", views.offer_detail, name="offer_detail"),
    path("offer/<int:offer_id>/apply/", views.apply_offer, name="apply_offer"),
    path("hr-dashboard/", views.hr_dashboard, name="hr_dashboard"),
    path("hr-dashboard/offers/new/", views.offer_create, name="offer_create"),
    path("hr-dashboard/offers/<int:offer_id>/edit/", views.offer_edit, name="offer_edit"),
    path("hr-dashboard/offers/<int:offer_id>/delete/", views.offer_delete, name="offer_delete"),
    path("hr-dashboard/applications/<int:application_id>/", views.application_detail, name="application_detail"),
    path(
        "hr-dashboard/applications/<int:application_id>/delete/",
        views.application_delete,
        name="application_delete",
    ),
]
