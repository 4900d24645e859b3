"""
Shared test configuration.

The function modules read their environment at import time (cold start), so the
variables are set here, before any test module imports them.
"""

import copy
import json
import os

import pytest

TEST_ENV = {
    "ENVIRONMENT": "test",
    "API_KEY": "test-api-key-12345",
    "CHRONOPOST_ACCOUNT_NUMBER": "19869502",
    "CHRONOPOST_PASSWORD": "255562",
    "CHRONOPOST_WSDL_URL": "https://ws.chronopost.fr/shipping-cxf/ShippingServiceWS?wsdl",
    "SHIPPER_NAME": "Test Shop",
    "SHIPPER_ADDRESS1": "123 Rue de Test",
    "SHIPPER_ADDRESS2": "",
    "SHIPPER_CITY": "Paris",
    "SHIPPER_ZIPCODE": "75001",
    "SHIPPER_COUNTRY": "FR",
    "SHIPPER_EMAIL": "test@example.com",
    "SHIPPER_PHONE": "0102030405",
    "SHIPPER_CONTACT_NAME": "Service Test",
    "MOCK_SHIPPING": "false",
}
os.environ.update(TEST_ENV)

API_KEY = TEST_ENV["API_KEY"]

VALID_REQUEST = {
    "orderNumber": "TEST-001",
    "recipient": {
        "name": "Jean Dupont",
        "address1": "123 Rue de la Liberté",
        "address2": "Appartement 5",
        "zipCode": "69001",
        "city": "Lyon",
        "country": "FR",
        "email": "jean.dupont@example.com",
        "phone": "0612345678",
    },
    "parcel": {"weight": 2.5, "length": 30, "width": 20, "height": 15},
    "productCode": "5N",
    "service": "0",
    "shipDate": "2026-02-01",
}

WOO_ORDER = {
    "id": 1234,
    "number": "1234",
    "billing": {
        "first_name": "Marie",
        "last_name": "Martin",
        "address_1": "8 Avenue Foch",
        "postcode": "75116",
        "city": "Paris",
        "country": "FR",
        "email": "marie.martin@example.com",
        "phone": "0611223344",
    },
    "shipping": {
        "first_name": "Marie",
        "last_name": "Martin",
        "address_1": "12 Rue du Port",
        "address_2": "Bât. B",
        "postcode": "13002",
        "city": "Marseille",
        "country": "FR",
    },
    "line_items": [
        {"name": "Savon", "quantity": 2, "weight": "0.5"},
        {"name": "Huile", "quantity": 1, "weight": "1.2"},
    ],
}

CARRIER_SUCCESS = {
    "return": {
        "errorCode": "0",
        "errorMessage": None,
        "reservationNumber": "88895048215708670",
        "resultMultiParcelValue": [{
            "geoPostNumeroColis": "XY504821570VF",
            "pdfEtiquette": "JVBERi0xLjQKJeLjz9MKMyAwIG9iago8PAovTGVuZ3RoIDQ=",
        }],
    }
}

CARRIER_ERROR = {
    "return": {
        "errorCode": "3",
        "errorMessage": "Adresse invalide",
    }
}


@pytest.fixture
def valid_request():
    return copy.deepcopy(VALID_REQUEST)


@pytest.fixture
def woo_order():
    return copy.deepcopy(WOO_ORDER)


@pytest.fixture
def shipper():
    import label_config
    label_config.invalidate_cache()
    yield label_config.load_config()
    label_config.invalidate_cache()


def api_event(method, path, body=None, api_key=API_KEY, raw_body=None):
    headers = {"Content-Type": "application/json"}
    if api_key is not None:
        headers["X-API-Key"] = api_key
    if raw_body is None and body is not None:
        raw_body = json.dumps(body)
    return {
        "httpMethod": method,
        "path": path,
        "resource": path,
        "headers": headers,
        "body": raw_body,
        "isBase64Encoded": False,
    }


def response_json(resp):
    return json.loads(resp["body"])
