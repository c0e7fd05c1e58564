"""
Tests for the order entity, key derivation and codec.
"""

import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from order_service.orders.errors import CorruptRecord, EncodingError
from order_service.orders.models import MAX_ORDER_ID, LineItem, Order, decode, encode, key_of


def test_key_of_is_decimal_with_prefix():
    assert key_of(1) == "order:1"
    assert key_of(MAX_ORDER_ID) == f"order:{2 ** 64 - 1}"
    assert key_of(7, prefix="shop:order:") == "shop:order:7"


@pytest.mark.parametrize("order", [
    Order(order_id=0, customer_id=uuid.uuid4()),
    Order(
        order_id=MAX_ORDER_ID,
        customer_id=uuid.uuid4(),
        line_items=[LineItem(item_id="A", quantity=2), LineItem(item_id="B", quantity=0, price=1999)],
        created_at=datetime(2024, 1, 2, 3, 4, 5, 600000, tzinfo=timezone.utc),
    ),
    Order(
        order_id=42,
        customer_id=uuid.uuid4(),
        line_items=[LineItem(item_id="x", quantity=1)],
        created_at=datetime(2023, 6, 1, 8, 0, tzinfo=timezone(timedelta(hours=-3))),
    ),
])
def test_decode_inverts_encode(order):
    assert decode(encode(order)) == order


def test_encode_is_field_tagged_json():
    order = Order(order_id=5, customer_id=uuid.UUID(int=1), line_items=[LineItem(item_id="A", quantity=2)])
    payload = json.loads(encode(order))

    assert payload == {
        "order_id": 5,
        "customer_id": "00000000-0000-0000-0000-000000000001",
        "line_items": [{"item_id": "A", "quantity": 2, "price": 0}],
        "created_at": None,
    }


def test_decode_accepts_str():
    order = Order(order_id=9, customer_id=uuid.uuid4())
    assert decode(encode(order).decode("utf-8")) == order


@pytest.mark.parametrize("raw", [
    b"not json",
    b"{}",
    b'{"order_id": -1, "customer_id": "00000000-0000-0000-0000-000000000001"}',
    b'{"order_id": 1, "customer_id": "not-a-uuid"}',
    "",
])
def test_decode_rejects_invalid_payloads(raw):
    with pytest.raises(CorruptRecord) as excinfo:
        decode(raw, "order:1")
    assert excinfo.value.key == "order:1"
    assert "order:1" in str(excinfo.value)


def test_decode_missing_value_is_corrupt():
    with pytest.raises(CorruptRecord, match="value is missing"):
        decode(None, "order:3")


def test_encode_rejects_non_orders():
    with pytest.raises(EncodingError):
        encode({"order_id": 1})


def test_order_id_must_fit_in_64_bits():
    with pytest.raises(ValidationError):
        Order(order_id=2 ** 64, customer_id=uuid.uuid4())
    with pytest.raises(ValidationError):
        Order(order_id=-1, customer_id=uuid.uuid4())


def test_line_item_validation():
    with pytest.raises(ValidationError):
        LineItem(item_id="", quantity=1)
    with pytest.raises(ValidationError):
        LineItem(item_id="A", quantity=-2)
