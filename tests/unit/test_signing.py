"""
Gateway signatures, ticket QR codes, upload signatures and payout amounts
"""
import base64
import hashlib
import json
from decimal import Decimal
from types import SimpleNamespace
from urllib.parse import urlparse, parse_qs

import pytest

from seatmarket.core.errors import PermissionDeniedError, ValidationFailedError
from seatmarket.models import UserRole
from seatmarket.services import payment_gateway
from seatmarket.services.payment_gateway import InvalidSignatureError
from seatmarket.services.payout_service import parse_amount
from seatmarket.services.ticket_signing import (
    build_ticket_payload,
    sign_ticket_qr,
    verify_ticket_qr,
    InvalidTicketQRError,
)
from seatmarket.services.upload_service import upload_signature, sign_upload_params


def signed_return(**fields):
    query = {
        "vnp_TxnRef": "0000000042",
        "vnp_Amount": "20000000",
        "vnp_ResponseCode": "00",
        "vnp_TransactionNo": "14000001",
    }
    query.update(fields)
    query["vnp_SecureHash"] = payment_gateway.sign_params(query)
    return query


class TestPaymentGateway:

    def test_txn_ref_is_zero_padded(self):
        assert payment_gateway.order_txn_ref(42) == "0000000042"

    def test_minor_units(self):
        assert payment_gateway.to_minor_units(Decimal("200000")) == 20000000
        assert payment_gateway.to_minor_units(Decimal("1.005")) == 100

    def test_payment_url_carries_valid_signature(self):
        url = payment_gateway.build_payment_url("0000000007", Decimal("150000"), "Order 7", "::1")
        query = {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}

        assert query["vnp_Amount"] == "15000000"
        assert query["vnp_IpAddr"] == "127.0.0.1"
        assert query["vnp_TxnRef"] == "0000000007"
        result = payment_gateway.verify_return(query)
        assert result["txn_ref"] == "0000000007"

    def test_verify_return(self):
        result = payment_gateway.verify_return(signed_return())

        assert result["is_success"]
        assert result["amount"] == Decimal("200000")
        assert result["transaction_no"] == "14000001"

    def test_failure_code(self):
        result = payment_gateway.verify_return(signed_return(vnp_ResponseCode="24"))
        assert not result["is_success"]

    def test_hash_is_case_insensitive(self):
        query = signed_return()
        query["vnp_SecureHash"] = query["vnp_SecureHash"].upper()
        assert payment_gateway.verify_return(query)["is_success"]

    def test_missing_hash(self):
        query = signed_return()
        del query["vnp_SecureHash"]
        with pytest.raises(InvalidSignatureError):
            payment_gateway.verify_return(query)

    def test_tampered_amount(self):
        query = signed_return()
        query["vnp_Amount"] = "100"
        with pytest.raises(InvalidSignatureError):
            payment_gateway.verify_return(query)

    def test_wrong_secret(self):
        query = signed_return()
        query["vnp_SecureHash"] = payment_gateway.sign_params(
            {k: v for k, v in query.items() if k != "vnp_SecureHash"}, secret="other-secret"
        )
        with pytest.raises(InvalidSignatureError):
            payment_gateway.verify_return(query)


def make_ticket():
    area = SimpleNamespace(id=3, name="Floor")
    row = SimpleNamespace(id=2, row_name="A", area=area)
    seat = SimpleNamespace(id=1, seat_number="7", row=row)
    event = SimpleNamespace(name="Test Concert")
    return SimpleNamespace(id=99, event_id=5, event=event, seat=seat)


class TestTicketQR:

    def test_round_trip(self):
        payload = build_ticket_payload(make_ticket(), "Jane Doe")
        decoded = verify_ticket_qr(sign_ticket_qr(payload))

        assert decoded["ticket_id"] == 99
        assert decoded["visitor_name"] == "Jane Doe"
        assert decoded["seat"] == {"id": 1, "number": "7"}
        assert decoded["area"]["name"] == "Floor"

    def test_tampered_payload(self):
        data = sign_ticket_qr(build_ticket_payload(make_ticket(), "Jane Doe"))

        # swap payloads while keeping the original signature
        padded = data + "=" * (-len(data) % 4)
        signed = json.loads(base64.urlsafe_b64decode(padded))
        signed["payload"]["ticket_id"] = 100
        tampered = base64.urlsafe_b64encode(json.dumps(signed).encode()).decode().rstrip("=")

        with pytest.raises(InvalidTicketQRError):
            verify_ticket_qr(tampered)

    @pytest.mark.parametrize("data", ["", "not-base64!!", "e30"])
    def test_malformed(self, data):
        with pytest.raises(InvalidTicketQRError):
            verify_ticket_qr(data)


class TestUploadSignature:

    def test_signature_format(self):
        params = {"timestamp": 1700000000, "folder": "events", "public_id": ""}
        expected = hashlib.sha1(b"folder=events&timestamp=1700000000secret").hexdigest()
        assert upload_signature(params, "secret") == expected

    def test_sign_for_organizer(self):
        user = SimpleNamespace(role=UserRole.ORGANIZER)
        signed = sign_upload_params(user, {"folder": "events", "timestamp": 1700000000})

        assert signed["timestamp"] == 1700000000
        assert signed["api_key"] == "test-api-key"
        assert signed["cloud_name"] == "test-cloud"
        assert signed["signature"] == upload_signature(
            {"folder": "events", "timestamp": 1700000000}, "test-api-secret"
        )

    def test_customers_cannot_sign(self):
        with pytest.raises(PermissionDeniedError):
            sign_upload_params(SimpleNamespace(role=UserRole.CUSTOMER), {})


class TestParseAmount:

    def test_valid(self):
        assert parse_amount("1500000") == Decimal("1500000")

    @pytest.mark.parametrize("amount", ["0", "-5", "12.5", "012", "abc", "", 100])
    def test_invalid(self, amount):
        with pytest.raises(ValidationFailedError):
            parse_amount(amount)
