# label_request.py
# Canonical label request -> Chronopost shippingMultiParcelV4 document.
# Pure apart from the clock, which callers may pass in as `now`.

from datetime import date, datetime, timedelta
from typing import Any, Dict, Mapping, Optional

DEFAULT_PRODUCT_CODE = "5N"
DEFAULT_SERVICE = "0"
PERISHABLE_PRODUCT_CODES = frozenset({"2R", "2S"})
EXPIRATION_DAYS = 5
DEFAULT_DIMENSION = "10"

HOME_COUNTRY = "FR"
HOME_COUNTRY_NAME = "FRANCE"


def _num_str(value: Any) -> str:
    """Numbers as the carrier expects them: 2.0 -> "2", 2.5 -> "2.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

def _dimension(value: Any) -> str:
    return _num_str(value) if value else DEFAULT_DIMENSION

def country_name(code: str) -> str:
    return HOME_COUNTRY_NAME if code == HOME_COUNTRY else code

def is_perishable(product_code: str) -> bool:
    return product_code in PERISHABLE_PRODUCT_CODES

def expiration_for(ship_date: str) -> str:
    """shipDate + 5 days at 23:59:59, as YYYY-MM-DDTHH:MM:SS without a zone. "" if shipDate is unusable."""
    try:
        day = date.fromisoformat(str(ship_date)[:10]) + timedelta(days=EXPIRATION_DAYS)
    except ValueError:
        return ""
    return f"{day.isoformat()}T23:59:59"


def _party(prefix: str, shipper: Mapping[str, Any]) -> Dict[str, str]:
    # Shipper and billed customer carry the same identity
    return {
        f"{prefix}Adress1": shipper["address1"],
        f"{prefix}Adress2": shipper.get("address2") or "",
        f"{prefix}City": shipper["city"],
        f"{prefix}Civility": "M",
        f"{prefix}ContactName": shipper["contact_name"],
        f"{prefix}Country": shipper["country"],
        f"{prefix}CountryName": country_name(shipper["country"]),
        f"{prefix}Email": shipper["email"],
        f"{prefix}MobilePhone": "",
        f"{prefix}Name": shipper["name"],
        f"{prefix}Name2": "",
        f"{prefix}Phone": shipper["phone"],
        f"{prefix}PreAlert": "0",
        f"{prefix}ZipCode": shipper["zip_code"],
    }

def _recipient(recipient: Mapping[str, Any]) -> Dict[str, str]:
    return {
        "recipientName": recipient.get("name") or "",
        "recipientName2": "",
        "recipientAdress1": recipient.get("address1") or "",
        "recipientAdress2": recipient.get("address2") or "",
        "recipientZipCode": str(recipient.get("zipCode") or ""),
        "recipientCity": recipient.get("city") or "",
        "recipientCountry": recipient.get("country") or "",
        "recipientContactName": recipient.get("name") or "",
        "recipientEmail": recipient.get("email") or "",
        "recipientPhone": str(recipient.get("phone") or ""),
        "recipientMobilePhone": "",
        "recipientPreAlert": "0",
        "recipientType": "2",
    }

def _skybill(parcel: Mapping[str, Any], product_code: str, service: str,
             ship_date: str, now: datetime) -> Dict[str, str]:
    return {
        "bulkNumber": "1",
        "codCurrency": "EUR",
        "codValue": "0",
        "content1": "",
        "content2": "",
        "content3": "",
        "content4": "",
        "content5": "",
        "customsCurrency": "EUR",
        "customsValue": "",
        "evtCode": "DC",
        "insuredCurrency": "EUR",
        "insuredValue": "0",
        "latitude": "",
        "longitude": "",
        "masterSkybillNumber": "",
        "objectType": "MAR",
        "portCurrency": "",
        "portValue": "0",
        "productCode": product_code,
        "qualite": "",
        "service": service,
        "shipDate": ship_date,
        "shipHour": str(now.hour),
        "skybillRank": "1",
        "source": "",
        "weight": _num_str(parcel.get("weight")),
        "weightUnit": "KGM",
        "height": _dimension(parcel.get("height")),
        "length": _dimension(parcel.get("length")),
        "width": _dimension(parcel.get("width")),
        "as": "",
        "subAccount": "",
        "toTheOrderOf": "",
        "skybillNumber": "",
        "carrier": "1",
        "skybillBackNumber": "",
        "alternateProductCode": "",
        "labelNumber": "",
    }


def build_label_request(data: Mapping[str, Any], shipper: Mapping[str, Any],
                        now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build the shippingMultiParcelV4 arguments for one parcel.

    `shipper` is the read-only mapping from label_config.load_config().
    `now` drives shipHour (local hour); defaults to datetime.now().
    The scheduledValue block is only present for perishable product codes.
    """
    now = now or datetime.now()
    order_number = data.get("orderNumber")
    order_number = "" if order_number is None else str(order_number)
    product_code = data.get("productCode") or DEFAULT_PRODUCT_CODE
    service = data.get("service") or DEFAULT_SERVICE
    ship_date = data.get("shipDate") or ""

    document: Dict[str, Any] = {
        "headerValue": {
            "accountNumber": shipper["account_number"],
            "idEmit": "CHRFR",
            "identWebPro": "",
            "subAccount": "",
        },
        "shipperValue": {**_party("shipper", shipper), "shipperType": "1"},
        "customerValue": {**_party("customer", shipper), "printAsSender": "N"},
        "recipientValue": _recipient(data.get("recipient") or {}),
        "refValue": {
            "customerSkybillNumber": "",
            "recipientRef": order_number,
            "shipperRef": order_number,
            "idRelais": "",
        },
        "skybillValue": _skybill(data.get("parcel") or {}, product_code, service, ship_date, now),
        "skybillParamsValue": {
            "duplicata": "N",
            "mode": "PDF",
            "withReservation": "2",
        },
        "password": shipper["password"],
        "modeRetour": "2",
        "numberOfParcel": "1",
        "version": "2.0",
        "multiParcel": "N",
    }

    if is_perishable(product_code):
        expiration = data.get("expirationDate") or expiration_for(ship_date)
        document["scheduledValue"] = {
            "expirationDate": expiration,
            "sellByDate": expiration,
        }

    return document
