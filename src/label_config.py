# label_config.py
# Process-wide configuration for the Chronopost label functions (environment only)

import os
import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from kms_utils import kms_decrypt_wrapped, mask_secret

logger = logging.getLogger(__name__)

# ---------------- Plain env (safe defaults) ---------------------------------

class ConfigError(RuntimeError):
    pass

ENVIRONMENT     = (os.environ.get("ENVIRONMENT") or "dev").lower()   # "dev" | "prod" | "test"
WSDL_URL        = os.environ.get("CHRONOPOST_WSDL_URL") or "https://ws.chronopost.fr/shipping-cxf/ShippingServiceWS?wsdl"
HTTP_TIMEOUT    = int(os.environ.get("HTTP_TIMEOUT", "30"))
MOCK_SHIPPING   = os.environ.get("MOCK_SHIPPING", "false").lower() == "true"
KMS_KEY_ARN     = os.environ.get("KMS_KEY_ARN") or None

SERVICE_NAME    = "Chronopost API"
SERVICE_VERSION = "1.0.0"

# Required at first use; secrets may be ENCRYPTED(...)
_REQUIRED = [
    "API_KEY",
    "CHRONOPOST_ACCOUNT_NUMBER",
    "CHRONOPOST_PASSWORD",
    "SHIPPER_NAME",
    "SHIPPER_ADDRESS1",
    "SHIPPER_CITY",
    "SHIPPER_ZIPCODE",
    "SHIPPER_COUNTRY",
    "SHIPPER_CONTACT_NAME",
    "SHIPPER_EMAIL",
    "SHIPPER_PHONE",
]
_SECRETS = {"API_KEY", "CHRONOPOST_PASSWORD"}

# ---------------- Cache (one load per container) ----------------------------

_cache_data: Optional[Mapping[str, Any]] = None

def is_production() -> bool:
    return ENVIRONMENT == "prod"

def is_test() -> bool:
    return ENVIRONMENT == "test"

def _missing(names: List[str]) -> List[str]:
    return [n for n in names if not (os.environ.get(n) or "").strip()]

def _read_env() -> Dict[str, Any]:
    missing = _missing(_REQUIRED)
    if missing:
        raise ConfigError(f"Missing required environment variable(s): {', '.join(missing)}")

    values = {n: os.environ[n].strip() for n in _REQUIRED}
    for name in _SECRETS:
        values[name] = kms_decrypt_wrapped(values[name], KMS_KEY_ARN)

    return {
        "api_key": values["API_KEY"],
        "account_number": values["CHRONOPOST_ACCOUNT_NUMBER"],
        "password": values["CHRONOPOST_PASSWORD"],
        "wsdl_url": WSDL_URL,
        "name": values["SHIPPER_NAME"],
        "address1": values["SHIPPER_ADDRESS1"],
        "address2": (os.environ.get("SHIPPER_ADDRESS2") or "").strip(),
        "city": values["SHIPPER_CITY"],
        "zip_code": values["SHIPPER_ZIPCODE"],
        "country": values["SHIPPER_COUNTRY"],
        "contact_name": values["SHIPPER_CONTACT_NAME"],
        "email": values["SHIPPER_EMAIL"],
        "phone": values["SHIPPER_PHONE"],
    }

# ---------------- Public API -------------------------------------------------

def load_config(force: bool = False) -> Mapping[str, Any]:
    """
    Shipper identity and carrier credentials, read from the environment once
    and returned as a read-only mapping. Raises ConfigError if anything required is missing.
    """
    global _cache_data
    if _cache_data is not None and not force:
        return _cache_data

    cfg = MappingProxyType(_read_env())
    logger.info(
        f"[CONFIG] Loaded shipper config: account={cfg['account_number']} "
        f"password={mask_secret(cfg['password'])} api_key={mask_secret(cfg['api_key'])}"
    )
    _cache_data = cfg
    return cfg

def invalidate_cache() -> None:
    """Drop the cached config so the next call re-reads the environment."""
    global _cache_data
    _cache_data = None

def resolved_source() -> Dict[str, Any]:
    """For diagnostics/logging. Never contains secrets."""
    return {
        "environment": ENVIRONMENT,
        "wsdl_url": WSDL_URL,
        "mock_shipping": MOCK_SHIPPING,
        "account_number": os.environ.get("CHRONOPOST_ACCOUNT_NUMBER") or "",
        "api_key_configured": bool(os.environ.get("API_KEY")),
        "missing": _missing(_REQUIRED),
    }
