# woocommerce_normalizer.py
# WooCommerce order payload -> canonical label request.
# Never raises: unresolved fields come out as "" and are rejected later by label_validation.

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

DEFAULT_WEIGHT_KG = 0.5
DEFAULT_LENGTH_CM = 30
DEFAULT_WIDTH_CM = 20
DEFAULT_HEIGHT_CM = 15
DEFAULT_COUNTRY = "FR"
DEFAULT_PRODUCT_CODE = "5N"
DEFAULT_SERVICE = "0"
UNKNOWN_CUSTOMER = "Client"


def _obj(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}

def _present(value: Any) -> bool:
    return value not in (None, "", [], {})

def _first(*candidates: Any, default: Any = "") -> Any:
    """First non-empty candidate, evaluated left to right."""
    for c in candidates:
        if _present(c):
            return c
    return default

def _first_str(*candidates: Any, default: str = "") -> str:
    v = _first(*candidates, default=None)
    return default if v is None else str(v)

def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0

def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0

def _order_number(order: Dict[str, Any]) -> str:
    for key in ("order_id", "id", "number"):
        v = order.get(key)
        if v is not None and str(v) != "":
            return str(v)
    return ""

def line_items_weight(items: List[Any]) -> float:
    """Sum of weight x quantity; unparseable weight counts as 0, unparseable quantity as 1."""
    total = 0.0
    for item in items:
        item = _obj(item)
        total += (_to_float(item.get("weight")) or 0) * (_to_int(item.get("quantity")) or 1)
    return total

def order_weight(order: Dict[str, Any]) -> float:
    weight = _to_float(order.get("total_weight"))
    if weight <= 0:
        weight = DEFAULT_WEIGHT_KG

    items = order.get("line_items")
    if isinstance(items, list):
        computed = line_items_weight(items)
        if computed > 0:
            weight = computed
    return weight

def tomorrow(today: Optional[date] = None) -> str:
    """Tomorrow as YYYY-MM-DD, using the UTC calendar day unless `today` is given."""
    today = today or datetime.now(timezone.utc).date()
    return (today + timedelta(days=1)).isoformat()


def transform_woocommerce_order(order: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    order = _obj(order)
    billing = _obj(order.get("billing"))
    shipping = order["shipping"] if isinstance(order.get("shipping"), dict) else billing

    full_name = "{} {}".format(
        _first_str(shipping.get("first_name"), billing.get("first_name")),
        _first_str(shipping.get("last_name"), billing.get("last_name")),
    ).strip()

    return {
        "orderNumber": _order_number(order),
        "recipient": {
            "name": _first_str(full_name, shipping.get("company"), default=UNKNOWN_CUSTOMER),
            "address1": _first_str(shipping.get("address_1"), billing.get("address_1")),
            "address2": _first_str(shipping.get("address_2"), billing.get("address_2")),
            "zipCode": _first_str(shipping.get("postcode"), billing.get("postcode")),
            "city": _first_str(shipping.get("city"), billing.get("city")),
            "country": _first_str(shipping.get("country"), billing.get("country"), default=DEFAULT_COUNTRY),
            "email": _first_str(billing.get("email"), order.get("billing_email")),
            "phone": _first_str(shipping.get("phone"), billing.get("phone"), order.get("billing_phone")),
        },
        "parcel": {
            "weight": order_weight(order),
            "length": _first(order.get("parcel_length"), default=DEFAULT_LENGTH_CM) or DEFAULT_LENGTH_CM,
            "width": _first(order.get("parcel_width"), default=DEFAULT_WIDTH_CM) or DEFAULT_WIDTH_CM,
            "height": _first(order.get("parcel_height"), default=DEFAULT_HEIGHT_CM) or DEFAULT_HEIGHT_CM,
        },
        "productCode": _first_str(order.get("chronopost_product"), default=DEFAULT_PRODUCT_CODE),
        "service": _first_str(order.get("chronopost_service"), default=DEFAULT_SERVICE),
        "shipDate": _first_str(order.get("ship_date")) or tomorrow(today),
        "expirationDate": _first(order.get("expiration_date"), default=None),
    }
