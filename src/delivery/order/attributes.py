"""Facts recovered from an order's line items and meta bag.

The shop stores customer choices (languages, page count, delivery method)
as free-form line-item attributes whose labels changed over time. Lookups
therefore take a list of label synonyms and compare them ignoring case,
accents and punctuation; the first matching attribute wins.
"""

import re
import unicodedata

from delivery.order import meta
from delivery.order.order import Order
from delivery.status.changes import to_flag

SOURCE_LANGUAGE_LABELS = ("Idioma de origen", "Idioma origen", "Traducir de", "Source language")
TARGET_LANGUAGE_LABELS = ("Idioma de destino", "Idioma destino", "Traducir a", "Target language")
PAGE_COUNT_LABELS = ("Número de páginas", "Páginas", "Nº de páginas", "Pages")
DELIVERY_METHOD_LABELS = ("Método de entrega", "Forma de entrega", "Tipo de entrega", "Delivery method")
DELIVERY_PREFERENCE_LABELS = (
    "¿Necesitas la traducción en papel?",
    "Traducción en papel",
    "Copia en papel",
    "Envío en papel",
    "Paper copy",
)

_PAPER_WORDS = ("papel", "paper", "correo", "mensajer", "postal", "courier", "envio", "fisic")
_DIGITAL_WORDS = ("digital", "pdf", "email", "electronic", "online", "solo_pdf")
# "correo electrónico" is email; a bare "correo" still means post.
_EMAIL_PHRASES = ("correo_electronico", "e_mail")
_PAPER_VETO_WORDS = ("papel", "paper", "mensajer", "postal", "fisic")
_NEGATIVE_WORDS = ("no", "false", "0", "ninguno", "none")
_AFFIRMATIVE_WORDS = ("si", "yes", "true", "1")


def fold(value) -> str:
    """Lower-case, strip accents and collapse punctuation to underscores."""
    text = unicodedata.normalize("NFKD", str(value))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")


def find_line_item_attribute(line_items: list[dict], labels) -> str | None:
    """Return the first non-empty attribute value whose label matches a synonym."""
    wanted = {fold(label) for label in labels}
    for item in line_items or []:
        attributes = item.get("attributes") or {}
        for attr_label, value in attributes.items():
            if fold(attr_label) in wanted and value not in (None, ""):
                return str(value).strip()
    return None


def _meta_or_attribute(order: Order, key: str, labels) -> str | None:
    value = order.meta_values.get(key)
    if value not in (None, ""):
        return str(value).strip()
    return find_line_item_attribute(order.items, labels)


def language_pair(order: Order) -> tuple[str | None, str | None]:
    return (
        _meta_or_attribute(order, meta.SOURCE_LANGUAGE, SOURCE_LANGUAGE_LABELS),
        _meta_or_attribute(order, meta.TARGET_LANGUAGE, TARGET_LANGUAGE_LABELS),
    )


def page_count(order: Order) -> int | None:
    raw = _meta_or_attribute(order, meta.PAGE_COUNT, PAGE_COUNT_LABELS)
    if raw is None:
        return None
    match = re.search(r"\d+", raw)
    return int(match.group()) if match else None


def _classify_method(text: str | None) -> bool | None:
    """True for paper, False for digital-only, None when the text says neither."""
    if not text:
        return None
    folded = fold(text)
    digital = any(phrase in folded for phrase in _EMAIL_PHRASES)
    for phrase in _EMAIL_PHRASES:
        folded = folded.replace(phrase, "_")
    digital = digital or any(word in folded for word in _DIGITAL_WORDS)

    if digital and not any(word in folded for word in _PAPER_VETO_WORDS):
        return False
    if any(word in folded for word in _PAPER_WORDS):
        return True
    return None


def _classify_preference(text: str | None) -> bool | None:
    if not text:
        return None
    folded = fold(text)
    tokens = folded.split("_")
    if tokens and tokens[0] in _NEGATIVE_WORDS:
        return False
    if tokens and tokens[0] in _AFFIRMATIVE_WORDS:
        return True
    return _classify_method(text)


def requires_paper_delivery(order: Order) -> bool:
    """Whether the client also expects a paper copy.

    Sources, first decisive answer wins:
        1. explicit delivery-method line item
        2. persisted ``envio_papel`` flag
        3. shipping method name
        4. delivery-preference line item
    Defaults to digital-only.
    """
    decided = _classify_method(find_line_item_attribute(order.items, DELIVERY_METHOD_LABELS))
    if decided is not None:
        return decided

    flag = order.meta_values.get(meta.PAPER_DELIVERY)
    if flag not in (None, ""):
        return to_flag(flag)

    decided = _classify_method(order.shipping_method)
    if decided is not None:
        return decided

    decided = _classify_preference(find_line_item_attribute(order.items, DELIVERY_PREFERENCE_LABELS))
    return bool(decided)
