"""Tests for the HTTP payment gateway adapter."""

import json
from decimal import Decimal

import pytest
import requests

from shopcart.domain.errors import PaymentGatewayError
from shopcart.services import payment_gateway
from shopcart.services.payment_gateway import (
    FakePaymentGateway,
    HttpPaymentGateway,
    build_gateway,
    to_minor_units,
)


def _response(status_code, body):
    resp = requests.Response()
    resp.status_code = status_code
    resp._content = json.dumps(body).encode()
    resp.url = "http://gateway.test/charges"
    return resp


def _raw_response(status_code, content):
    resp = requests.Response()
    resp.status_code = status_code
    resp._content = content
    resp.url = "http://gateway.test/charges"
    return resp


@pytest.fixture
def gateway():
    return HttpPaymentGateway(base_url="http://gateway.test/", api_key="sk_test", timeout=1)


def test_minor_units():
    assert to_minor_units(Decimal("37.50")) == 3750
    assert to_minor_units(Decimal("0.01")) == 1


def test_successful_charge(gateway, monkeypatch):
    sent = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        sent.update(url=url, json=json, headers=headers)
        return _response(200, {"id": "ch_1", "status": "succeeded"})

    monkeypatch.setattr(gateway.session, "post", fake_post)

    result = gateway.create_charge(Decimal("10.00"), "USD", "tok_visa", "reservation-1")

    assert result.success
    assert result.transaction_id == "ch_1"
    assert sent["url"] == "http://gateway.test/charges"
    assert sent["json"] == {"amount": 1000, "currency": "usd", "source": "tok_visa"}
    assert sent["headers"] == {"Idempotency-Key": "reservation-1"}
    assert gateway.session.headers["Authorization"] == "Bearer sk_test"


def test_declined_charge(gateway, monkeypatch):
    monkeypatch.setattr(
        gateway.session,
        "post",
        lambda *a, **kw: _response(402, {"id": "ch_2", "status": "failed", "failure_reason": "card_declined"}),
    )

    result = gateway.create_charge(Decimal("10.00"), "usd", "tok", "reservation-2")

    assert not result.success
    assert result.failure_reason == "card_declined"


def test_server_error_raises(gateway, monkeypatch):
    monkeypatch.setattr(gateway.session, "post", lambda *a, **kw: _response(500, {"message": "boom"}))

    with pytest.raises(PaymentGatewayError):
        gateway.create_charge(Decimal("10.00"), "usd", "tok", "reservation-3")


def test_connection_error_is_retried_then_raised(gateway, monkeypatch):
    calls = {"n": 0}

    def down(*a, **kw):
        calls["n"] += 1
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(gateway.session, "post", down)

    with pytest.raises(PaymentGatewayError):
        gateway.create_charge(Decimal("10.00"), "usd", "tok", "reservation-4")
    assert calls["n"] == 3


@pytest.mark.parametrize("status_code", [200, 402])
def test_non_json_body_raises_gateway_error(gateway, monkeypatch, status_code):
    monkeypatch.setattr(
        gateway.session,
        "post",
        lambda *a, **kw: _raw_response(status_code, b"<html>Payment Required</html>"),
    )

    with pytest.raises(PaymentGatewayError):
        gateway.create_charge(Decimal("10.00"), "usd", "tok", "reservation-5")


def test_json_list_body_raises_gateway_error(gateway, monkeypatch):
    monkeypatch.setattr(gateway.session, "post", lambda *a, **kw: _response(200, ["succeeded"]))

    with pytest.raises(PaymentGatewayError):
        gateway.create_charge(Decimal("10.00"), "usd", "tok", "reservation-6")


class TestBuildGateway:
    def test_fake_only_when_requested(self, monkeypatch):
        monkeypatch.setattr(payment_gateway, "PAYMENT_GATEWAY", "fake")
        assert isinstance(build_gateway(), FakePaymentGateway)

    def test_missing_url_fails_at_startup(self, monkeypatch):
        monkeypatch.setattr(payment_gateway, "PAYMENT_GATEWAY", "http")
        monkeypatch.setattr(payment_gateway, "PAYMENT_GATEWAY_URL", "")

        with pytest.raises(RuntimeError, match="PAYMENT_GATEWAY_URL"):
            build_gateway()

    def test_unknown_kind_is_rejected(self, monkeypatch):
        monkeypatch.setattr(payment_gateway, "PAYMENT_GATEWAY", "stripe")

        with pytest.raises(RuntimeError, match="stripe"):
            build_gateway()

    def test_http_gateway_with_url(self, monkeypatch):
        monkeypatch.setattr(payment_gateway, "PAYMENT_GATEWAY", "http")
        monkeypatch.setattr(payment_gateway, "PAYMENT_GATEWAY_URL", "http://gateway.test")

        gw = build_gateway()

        assert isinstance(gw, HttpPaymentGateway)
        assert gw.base_url == "http://gateway.test"
