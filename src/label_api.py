# label_api.py
# Chronopost label API behind API Gateway (proxy integration).
# Routes:
#   GET  /health
#   POST /api/create-label               (x-api-key)
#   POST /api/woocommerce/create-label   (x-api-key)

import json
import base64
import hmac
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

import label_config
from label_config import load_config, resolved_source
from label_request import build_label_request
from label_validation import validate_label_request, validate_woocommerce_request
from woocommerce_normalizer import transform_woocommerce_order
from chronopost_client import ChronopostError, LabelClient, get_client, tracking_url

logger = logging.getLogger()
logger.setLevel(logging.CRITICAL if label_config.is_test() else logging.INFO)

AVAILABLE_ENDPOINTS = [
    "GET /health",
    "POST /api/create-label",
    "POST /api/woocommerce/create-label",
]

logger.info(f"[LABEL] Cold start: {json.dumps(resolved_source())}")

# =============== HTTP helpers ===============

def _resp(status: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "OPTIONS,GET,POST",
            "Access-Control-Allow-Headers": "Content-Type, X-Api-Key",
            "X-Content-Type-Options": "nosniff",
        },
        "body": json.dumps(body),
    }

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

def _headers(event) -> Dict[str, str]:
    return {str(k).lower(): v for k, v in (event.get("headers") or {}).items()}

def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON body: {name} is not valid JSON")

def _parse_json_body(event) -> Dict[str, Any]:
    raw = event.get("body") or "{}"
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON body: {e}")
    if not isinstance(data, dict):
        raise ValueError("JSON body must be an object")
    return data

def _authorized(event) -> bool:
    provided = _headers(event).get("x-api-key")
    if not provided:
        return False
    expected = load_config()["api_key"]
    return hmac.compare_digest(str(provided).encode("utf-8"), expected.encode("utf-8"))

def _carrier_client() -> LabelClient:
    cfg = load_config()
    return get_client(cfg["wsdl_url"], timeout=label_config.HTTP_TIMEOUT, mock=label_config.MOCK_SHIPPING)

def _label_data(label: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "skybillNumber": label["skybillNumber"],
        "reservationNumber": label["reservationNumber"],
        "pdfLabel": label["pdfLabel"],
        "trackingUrl": tracking_url(label["skybillNumber"]),
    }

def _carrier_error(e: ChronopostError, **extra) -> Dict[str, Any]:
    return _resp(400, {
        "success": False,
        "error": "Erreur Chronopost",
        "message": e.message,
        "code": e.code,
        **extra,
    })

# =============== Route handlers ===============

def _handle_health(event) -> Dict[str, Any]:
    return _resp(200, {
        "success": True,
        "status": "ok",
        "timestamp": _now_iso(),
        "service": label_config.SERVICE_NAME,
        "version": label_config.SERVICE_VERSION,
    })

def _handle_create_label(data: Dict[str, Any]) -> Dict[str, Any]:
    order_number = data.get("orderNumber")
    logger.info(f"[LABEL] New label request for order {order_number}")

    failure = validate_label_request(data)
    if failure:
        logger.warning(f"[LABEL] Rejected order {order_number}: {failure.category}")
        return _resp(400, failure.to_body())

    try:
        document = build_label_request(data, load_config())
        label = _carrier_client().create_label(document)
    except ChronopostError as e:
        logger.error(f"[LABEL] Chronopost refused order {order_number}: {e.code} {e.message}")
        return _carrier_error(e)
    except Exception as e:
        logger.error(f"[LABEL] Label creation failed for order {order_number}: {e}", exc_info=True)
        body = {"success": False, "error": "Erreur serveur", "message": str(e)}
        if not label_config.is_production():
            body["details"] = traceback.format_exc()
        return _resp(500, body)

    logger.info(f"[LABEL] Label {label['skybillNumber']} created for order {order_number}")
    return _resp(200, {
        "success": True,
        "data": _label_data(label),
        "orderNumber": order_number,
        "createdAt": _now_iso(),
    })

def _handle_woocommerce_label(order: Dict[str, Any]) -> Dict[str, Any]:
    logger.info(f"[WOO] New WooCommerce order {order.get('order_id') or order.get('id')}")

    data = transform_woocommerce_order(order)
    order_number = data["orderNumber"]

    failure = validate_woocommerce_request(data)
    if failure:
        logger.warning(f"[WOO] Rejected order {order_number or '<none>'}: {failure.category}")
        return _resp(400, failure.to_body())

    try:
        document = build_label_request(data, load_config())
        label = _carrier_client().create_label(document)
    except ChronopostError as e:
        logger.error(f"[WOO] Chronopost refused order {order_number}: {e.code} {e.message}")
        return _carrier_error(e, orderNumber=order_number)
    except Exception as e:
        logger.error(f"[WOO] Label creation failed for order {order_number}: {e}", exc_info=True)
        return _resp(500, {
            "success": False,
            "error": "Erreur serveur",
            "message": str(e),
            "orderNumber": order.get("order_id") or order.get("id") or "inconnu",
        })

    logger.info(f"[WOO] Label {label['skybillNumber']} created for order {order_number}")
    recipient = data["recipient"]
    return _resp(200, {
        "success": True,
        "data": {**_label_data(label), "trackingNumber": label["skybillNumber"]},
        "order": {
            "orderNumber": order_number,
            "recipientName": recipient["name"],
            "recipientEmail": recipient["email"],
            "recipientCity": recipient["city"],
            "weight": data["parcel"]["weight"],
        },
        "createdAt": _now_iso(),
    })

_PROTECTED = {
    ("POST", "/api/create-label"): _handle_create_label,
    ("POST", "/api/woocommerce/create-label"): _handle_woocommerce_label,
}

# =============== Lambda entry ===============

def lambda_handler(event, _context):
    method = (event.get("httpMethod") or "").upper()
    path = (event.get("path") or event.get("resource") or "").rstrip("/") or "/"

    try:
        if method == "OPTIONS":
            return _resp(200, {"message": "CORS preflight successful"})
        if method == "GET" and path == "/health":
            return _handle_health(event)

        handler = _PROTECTED.get((method, path))
        if handler is None:
            return _resp(404, {
                "success": False,
                "error": "Route non trouvée",
                "availableEndpoints": AVAILABLE_ENDPOINTS,
            })

        if not _authorized(event):
            logger.warning(f"[LABEL] Rejected {method} {path}: bad or missing API key")
            return _resp(401, {"success": False, "error": "API Key invalide ou manquante"})

        try:
            body = _parse_json_body(event)
        except ValueError as e:
            return _resp(400, {"success": False, "error": "JSON invalide", "details": str(e)})
        return handler(body)
    except Exception as e:
        logger.error(f"[LABEL] Unhandled error on {method} {path}: {e}", exc_info=True)
        return _resp(500, {"success": False, "error": "Erreur serveur interne", "message": str(e)})
