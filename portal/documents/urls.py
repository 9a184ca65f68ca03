from django.urls import path
from . import views

urlpatterns = [
    path("offers/<int:offer_id>/tdr/", views.offer_tdr, name="offer_tdr"),
    path(
        "applications/<int:application_id>/<slug:document>/",
        views.application_document,
        name="application_document",
    ),
]
