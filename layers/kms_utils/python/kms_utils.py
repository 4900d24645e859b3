# layers/kms_utils/python/kms_utils.py
"""
KMS helpers for the Chronopost label functions.

Secrets in the Lambda environment (API_KEY, CHRONOPOST_PASSWORD) may be stored
either as plaintext or as ENCRYPTED(base64_ciphertext). Wrapped values are
decrypted with the encryption context {"app": "chronopost-labels"}.

Usage:
    from kms_utils import kms_decrypt_wrapped, mask_secret

    password = kms_decrypt_wrapped(os.environ["CHRONOPOST_PASSWORD"])
    logger.info(f"password loaded: {mask_secret(password)}")
"""

import os
import base64
import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

ENCRYPTION_CONTEXT = {"app": "chronopost-labels"}

_kms_client = None


def _get_kms_client():
    """Get or create KMS client (cached)."""
    global _kms_client
    if _kms_client is None:
        region = os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or "eu-west-3"
        _kms_client = boto3.client("kms", region_name=region)
    return _kms_client


def is_wrapped(value: Optional[str]) -> bool:
    return isinstance(value, str) and value.startswith("ENCRYPTED(") and value.endswith(")")


def _unwrap_encrypted(value: str) -> str:
    if is_wrapped(value):
        return value[len("ENCRYPTED("):-1]
    return value


def kms_decrypt(ciphertext_wrapped: str, kms_key_arn: Optional[str] = None) -> bytes:
    """
    Decrypt an ENCRYPTED(base64) (or raw base64) value and return the plaintext bytes.

    Raises:
        ValueError: empty value or invalid base64
        ClientError: KMS refused the decrypt call
    """
    if not ciphertext_wrapped:
        raise ValueError("Cannot decrypt empty/None value")

    try:
        ciphertext_blob = base64.b64decode(_unwrap_encrypted(ciphertext_wrapped), validate=True)
    except Exception as e:
        raise ValueError(f"Invalid base64 ciphertext: {e}")

    decrypt_params = {
        "CiphertextBlob": ciphertext_blob,
        "EncryptionContext": ENCRYPTION_CONTEXT,
    }
    if kms_key_arn:
        decrypt_params["KeyId"] = kms_key_arn

    try:
        response = _get_kms_client().decrypt(**decrypt_params)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_msg = e.response.get("Error", {}).get("Message", str(e))
        logger.error(f"[KMS] Decryption failed: {error_code} - {error_msg}")
        raise

    plaintext = response["Plaintext"]
    logger.info(f"[KMS] Decrypted value ({len(plaintext)} bytes)")
    return plaintext


def kms_decrypt_wrapped(blob: Optional[str], kms_key_arn: Optional[str] = None) -> str:
    """
    Return the UTF-8 plaintext of a wrapped secret.
    Values without the ENCRYPTED() wrapper are returned unchanged.
    """
    if not blob:
        return ""
    if not is_wrapped(blob):
        return blob
    return kms_decrypt(blob, kms_key_arn).decode("utf-8")


def mask_secret(secret: Optional[str], keep: int = 4) -> str:
    """Mask a secret for logging: "******1234"."""
    if not secret:
        return ""
    if len(secret) <= keep:
        return "*" * len(secret)
    return "*" * (len(secret) - keep) + secret[-keep:]


__all__ = [
    "kms_decrypt",
    "kms_decrypt_wrapped",
    "mask_secret",
    "is_wrapped",
    "ENCRYPTION_CONTEXT",
]
