from django import template

from ..constants import offer_type_info

register = template.Library()


@register.filter
def offer_type_label(value):
    return offer_type_info(value)["name"]


@register.filter
def offer_type_color(value):
    return offer_type_info(value)["color"]
