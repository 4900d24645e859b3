# layers/chronopost/python/chronopost_client.py
"""
Chronopost shipping web service (SOAP) client shared by the label functions.

    client = get_client(wsdl_url, timeout=30)
    label = client.create_label(document)   # document from label_request.build_label_request
    label["skybillNumber"], label["pdfLabel"], label["reservationNumber"]

Carrier-reported failures (errorCode != "0") raise ChronopostError.
Transport and SOAP faults propagate unchanged (requests / zeep exceptions).
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from zeep import Client
from zeep.helpers import serialize_object
from zeep.transports import Transport

logger = logging.getLogger(__name__)

TRACKING_URL = "https://www.chronopost.fr/tracking-no-cms/suivi-page?listeNumerosLT={}"
OPERATION = "shippingMultiParcelV4"


class ChronopostError(RuntimeError):
    """The carrier answered but refused the shipment."""

    def __init__(self, code: str, message: Optional[str]):
        super().__init__(f"Chronopost error {code}: {message}")
        self.code = code
        self.message = message


def tracking_url(skybill_number: Optional[str]) -> str:
    return TRACKING_URL.format(skybill_number)


def _as_list(value: Any) -> List[Dict[str, Any]]:
    if value is None:
        return []
    if isinstance(value, list):
        return [v for v in value if isinstance(v, dict)]
    return [value] if isinstance(value, dict) else []


def parse_label_response(raw: Any) -> Dict[str, Any]:
    """
    Map a shippingMultiParcelV4 result to
    {reservationNumber, parcels: [{skybillNumber, pdfLabel}], skybillNumber, pdfLabel}.
    Accepts the {"return": {...}} envelope or the bare return object.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Unexpected Chronopost response type: {type(raw).__name__}")
    result = raw.get("return") if isinstance(raw.get("return"), dict) else raw

    code = result.get("errorCode")
    if code not in (None, "", 0) and str(code) != "0":
        raise ChronopostError(str(code), result.get("errorMessage"))

    parcels = [
        {"skybillNumber": p.get("geoPostNumeroColis"), "pdfLabel": p.get("pdfEtiquette")}
        for p in _as_list(result.get("resultMultiParcelValue"))
    ]
    first = parcels[0] if parcels else {}
    return {
        "reservationNumber": result.get("reservationNumber"),
        "parcels": parcels,
        "skybillNumber": first.get("skybillNumber"),
        "pdfLabel": first.get("pdfLabel"),
    }


class LabelClient:
    name: str

    def create_label(self, document: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class ChronopostClient(LabelClient):
    """SOAP client bound to the Chronopost WSDL, one per request."""
    name = "chronopost"

    def __init__(self, wsdl_url: str, timeout: int = 30):
        session = requests.Session()
        transport = Transport(session=session, timeout=timeout, operation_timeout=timeout)
        self.client = Client(wsdl_url, transport=transport)

    def create_label(self, document: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(f"[CHRONO] ({self.name}) Calling {OPERATION} for ref {document['refValue']['shipperRef']}")
        result = getattr(self.client.service, OPERATION)(**document)
        raw = serialize_object(result, dict)
        label = parse_label_response(raw)
        pdf = label["pdfLabel"]
        logger.info(
            f"[CHRONO] Label {label['skybillNumber']} reserved {label['reservationNumber']} "
            f"(pdf: {len(pdf) if pdf else 0} chars)"
        )
        return label


class MockChronopostClient(LabelClient):
    name = "mock"

    def create_label(self, document: Dict[str, Any]) -> Dict[str, Any]:
        ref = document["refValue"]["shipperRef"]
        logger.info(f"[CHRONO] ({self.name}) Fake label for ref {ref}")
        return parse_label_response({
            "return": {
                "errorCode": "0",
                "reservationNumber": f"MOCKRES{ref}",
                "resultMultiParcelValue": {
                    "geoPostNumeroColis": f"XM{ref}FR",
                    "pdfEtiquette": "JVBERi0xLjQKJU1PQ0sK",
                },
            }
        })


def get_client(wsdl_url: str, timeout: int = 30, mock: bool = False) -> LabelClient:
    if mock:
        return MockChronopostClient()
    return ChronopostClient(wsdl_url, timeout)
