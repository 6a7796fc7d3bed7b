"""
VNPay-style payment gateway: signed redirect URLs and return verification

The gateway signs the sorted, URL-encoded vnp_* parameters with
HMAC-SHA512 under the merchant hash secret. Amounts travel in minor units
(x100).
"""
import hmac
import hashlib
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Any, Optional
from urllib.parse import urlencode, quote_plus

from seatmarket.core.config import settings

SUCCESS_CODE = "00"
GATEWAY_TZ_OFFSET = timedelta(hours=7)  # Asia/Ho_Chi_Minh, no DST
DATE_FORMAT = "%Y%m%d%H%M%S"
ORDER_TYPE = "190000"  # entertainment & training


class InvalidSignatureError(Exception):
    """Raised when a gateway callback fails signature verification"""


def order_txn_ref(order_id: int) -> str:
    """Merchant transaction reference for an order"""
    return f"{order_id:010d}"


def _canonical_query(params: Dict[str, Any]) -> str:
    items = sorted((k, str(v)) for k, v in params.items() if v is not None and v != "")
    return urlencode(items, quote_via=quote_plus)


def sign_params(params: Dict[str, Any], secret: Optional[str] = None) -> str:
    secret = secret or settings.PAYMENT_HASH_SECRET
    return hmac.new(
        secret.encode("utf-8"),
        _canonical_query(params).encode("utf-8"),
        hashlib.sha512,
    ).hexdigest()


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def build_payment_url(
    txn_ref: str,
    amount: Decimal,
    order_info: str,
    client_ip: str,
    expires_in_seconds: int = 900,
    now: Optional[datetime] = None,
) -> str:
    local_now = (now or datetime.utcnow()) + GATEWAY_TZ_OFFSET
    params = {
        "vnp_Version": "2.1.0",
        "vnp_Command": "pay",
        "vnp_TmnCode": settings.PAYMENT_TMN_CODE,
        "vnp_Amount": to_minor_units(amount),
        "vnp_CurrCode": settings.PAYMENT_CURRENCY,
        "vnp_TxnRef": txn_ref,
        "vnp_OrderInfo": order_info,
        "vnp_OrderType": ORDER_TYPE,
        "vnp_Locale": settings.PAYMENT_LOCALE,
        "vnp_ReturnUrl": settings.PAYMENT_RETURN_URL,
        "vnp_IpAddr": "127.0.0.1" if client_ip in (None, "", "::1") else client_ip,
        "vnp_CreateDate": local_now.strftime(DATE_FORMAT),
        "vnp_ExpireDate": (local_now + timedelta(seconds=expires_in_seconds)).strftime(DATE_FORMAT),
    }
    signature = sign_params(params)
    return f"{settings.PAYMENT_GATEWAY_URL}?{_canonical_query(params)}&vnp_SecureHash={signature}"


def verify_return(query: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check the secure hash of a gateway return and normalise its fields.

    Raises InvalidSignatureError on a missing or wrong hash.
    """
    received = query.get("vnp_SecureHash")
    if not received:
        raise InvalidSignatureError("Missing secure hash")

    params = {
        k: v for k, v in query.items()
        if k.startswith("vnp_") and k not in ("vnp_SecureHash", "vnp_SecureHashType")
    }
    expected = sign_params(params)
    if not hmac.compare_digest(expected.lower(), str(received).lower()):
        raise InvalidSignatureError("Secure hash mismatch")

    try:
        amount = Decimal(str(params.get("vnp_Amount", "0"))) / 100
    except ArithmeticError:
        raise InvalidSignatureError("Malformed amount")

    return {
        "txn_ref": params.get("vnp_TxnRef"),
        "amount": amount,
        "response_code": params.get("vnp_ResponseCode"),
        "transaction_status": params.get("vnp_TransactionStatus"),
        "transaction_no": params.get("vnp_TransactionNo"),
        "bank_code": params.get("vnp_BankCode"),
        "pay_date": params.get("vnp_PayDate"),
        "is_success": params.get("vnp_ResponseCode") == SUCCESS_CODE,
    }
