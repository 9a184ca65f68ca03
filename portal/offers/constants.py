"""Constants used by the offers app.

Offer types, statuses and the document set of an application are kept in a
single place so forms, filters and templates read the same values.
"""

from __future__ import annotations

from django.db import models


class OfferType(models.TextChoices):
    CANDIDATURE = "candidature", "Candidature"
    MANIFESTATION = "manifestation", "Manifestation"
    APPEL_D_OFFRE = "appel_d_offre", "Appel d'Offre"
    CONSULTATION = "consultation", "Consultation"


class OfferStatus(models.TextChoices):
    ONGOING = "ongoing", "Ongoing"
    CLOSED = "closed", "Closed"


OFFER_TYPE_COLORS = {
    OfferType.CANDIDATURE: "blue",
    OfferType.MANIFESTATION: "purple",
    OfferType.APPEL_D_OFFRE: "yellow",
    OfferType.CONSULTATION: "green",
}


def offer_type_info(offer_type: str) -> dict[str, str]:
    """Display label and badge colour for an offer type.

    Unknown types are shown as-is on a neutral badge.
    """
    if offer_type in OfferType.values:
        return {"name": OfferType(offer_type).label, "color": OFFER_TYPE_COLORS[offer_type]}
    return {"name": offer_type, "color": "gray"}


# Documents every applicant uploads, in display order.
BASE_DOCUMENTS = (
    ("cv", "CV"),
    ("diplome", "diploma"),
    ("id_card", "ID card"),
    ("cover_letter", "cover letter"),
)

# Extra documents for manifestations, calls for tender and consultations.
ADDITIONAL_DOCUMENTS = (
    ("declaration_sur_honneur", "declaration sur honneur"),
    ("fiche_de_referencement", "fiche de referencement"),
    ("extrait_registre", "extrait registre"),
    ("note_methodologique", "note methodologique"),
    ("liste_references", "liste references"),
    ("offre_financiere", "offre financiere"),
)

DOCUMENTS = BASE_DOCUMENTS + ADDITIONAL_DOCUMENTS
DOCUMENT_LABELS = dict(DOCUMENTS)


def requires_additional_documents(offer_type: str) -> bool:
    return offer_type in {
        OfferType.MANIFESTATION,
        OfferType.APPEL_D_OFFRE,
        OfferType.CONSULTATION,
    }
