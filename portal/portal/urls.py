from django.urls import path, re_path, include
from django.views.generic import RedirectView

from offers import views as offer_views

urlpatterns = [
    path("", offer_views.home, name="home"),
    path("about/", offer_views.about, name="about"),
    path("", include("offers.urls")),
    path("accounts/", include("accounts.urls")),
    path("documents/", include("documents.urls")),
    # Anything else goes back to the offer list.
    re_path(r"^.*/$", RedirectView.as_view(pattern_name="home", permanent=False)),
]
