# label_validation.py
# Validation gate run before any carrier call. Returns a ValidationFailure or None, never raises.

import math
from datetime import date
from typing import Any, Dict, Mapping, NamedTuple, Optional

RECIPIENT_REQUIRED = ["name", "address1", "zipCode", "city", "country", "email", "phone"]
WOO_ADDRESS_REQUIRED = ["address1", "zipCode", "city"]


class ValidationFailure(NamedTuple):
    category: str   # machine-readable
    error: str      # wire message
    details: str

    def to_body(self) -> Dict[str, Any]:
        return {"success": False, "error": self.error, "details": self.details}


MISSING_DATA = ValidationFailure(
    "missing_data", "Données manquantes",
    "orderNumber, recipient, parcel et shipDate sont requis")
INCOMPLETE_RECIPIENT = ValidationFailure(
    "incomplete_recipient", "Informations destinataire incomplètes",
    "name, address1, zipCode, city, country, email, phone sont requis")
INVALID_WEIGHT = ValidationFailure(
    "invalid_weight", "Poids du colis invalide",
    "Le poids doit être supérieur à 0 (en kg)")
INVALID_SHIP_DATE = ValidationFailure(
    "invalid_ship_date", "Date d'envoi invalide",
    "shipDate doit être une date au format YYYY-MM-DD")

MISSING_ORDER_NUMBER = ValidationFailure(
    "missing_order_number", "Numéro de commande manquant",
    "order_id ou id est requis")
INCOMPLETE_ADDRESS = ValidationFailure(
    "incomplete_address", "Adresse de livraison incomplète",
    "address_1, postcode et city sont requis dans shipping ou billing")
MISSING_EMAIL = ValidationFailure(
    "missing_email", "Email manquant",
    "billing.email ou billing_email est requis")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or value in ([], {})

def missing_order_number(value: Any) -> bool:
    """Order numbers are non-empty strings or non-zero integers; 0, false and blanks are missing."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return True
    return not str(value).strip() or value == 0

def _missing_any(obj: Mapping[str, Any], fields) -> bool:
    return any(_blank(obj.get(f)) for f in fields)

def positive_weight(value: Any) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    try:
        weight = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(weight) and weight > 0

def valid_ship_date(value: Any) -> bool:
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def validate_label_request(data: Mapping[str, Any]) -> Optional[ValidationFailure]:
    """Canonical request rules: presence, then recipient, then weight, then ship date."""
    if missing_order_number(data.get("orderNumber")) or \
            any(_blank(data.get(f)) for f in ("recipient", "parcel", "shipDate")):
        return MISSING_DATA

    recipient = data["recipient"]
    if not isinstance(recipient, dict) or _missing_any(recipient, RECIPIENT_REQUIRED):
        return INCOMPLETE_RECIPIENT

    parcel = data["parcel"]
    if not isinstance(parcel, dict) or not positive_weight(parcel.get("weight")):
        return INVALID_WEIGHT

    if not valid_ship_date(data["shipDate"]):
        return INVALID_SHIP_DATE

    return None


def validate_woocommerce_request(data: Mapping[str, Any]) -> Optional[ValidationFailure]:
    """Checks on a normalized WooCommerce order; the normalizer has already filled defaults."""
    if missing_order_number(data.get("orderNumber")):
        return MISSING_ORDER_NUMBER

    recipient = data.get("recipient") or {}
    if _missing_any(recipient, WOO_ADDRESS_REQUIRED):
        return INCOMPLETE_ADDRESS

    if _blank(recipient.get("email")):
        return MISSING_EMAIL

    return None
