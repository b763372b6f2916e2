"""Tests for snapshot normalization and decoding"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from fuelops.audit.registry import EntityType, get_tracked
from fuelops.audit.snapshot import (
    TECHNICAL_FIELDS,
    decode_snapshot,
    decode_value,
    normalize_snapshot,
    normalize_value,
    snapshot,
    tracked_fields,
)
from fuelops.models.customer import Customer
from fuelops.models.delivery import DeliveryCost
from fuelops.models.user import UserRole


def test_tracked_fields_skip_technical_columns():
    fields = tracked_fields(Customer)
    assert "name" in fields
    assert "is_active" in fields
    assert not TECHNICAL_FIELDS.intersection(fields)


def test_tracked_fields_honour_exclude():
    fields = tracked_fields(Customer, exclude=("description",))
    assert "description" not in fields
    assert "name" in fields


def test_decimal_representations_compare_equal():
    assert normalize_value(Decimal("100.50")) == normalize_value(Decimal("100.5")) == "100.5"
    assert normalize_value(Decimal("150.0000")) == "150"
    assert normalize_value(Decimal("0.000")) == "0"
    assert normalize_value(2.5) == "2.5"


def test_datetimes_become_utc_seconds():
    aware = datetime(2024, 3, 1, 15, 30, 45, 123456, tzinfo=timezone(timedelta(hours=3)))
    naive = datetime(2024, 3, 1, 12, 30, 45)
    assert normalize_value(aware) == "2024-03-01T12:30:45"
    assert normalize_value(naive) == "2024-03-01T12:30:45"


def test_plain_values_pass_through():
    entity_id = uuid4()
    assert normalize_value(None) is None
    assert normalize_value(True) is True
    assert normalize_value(7) == 7
    assert normalize_value("text") == "text"
    assert normalize_value(entity_id) == str(entity_id)
    assert normalize_value(UserRole.MANAGER) == "manager"


def test_normalize_snapshot_drops_technical_fields():
    data = {"id": uuid4(), "name": "Acme", "updated_at": datetime.utcnow(), "price": Decimal("1.10")}
    assert normalize_snapshot(data) == {"name": "Acme", "price": "1.1"}
    assert normalize_snapshot(None) is None


def test_snapshot_reads_only_tracked_fields():
    customer = Customer(id=uuid4(), name="Acme", module="both", is_foreign=True)
    data = get_tracked(EntityType.CUSTOMER).snapshot(customer)
    assert data["name"] == "Acme"
    assert data["is_foreign"] is True
    assert "id" not in data
    assert "created_at" not in data
    assert list(data) == list(tracked_fields(Customer))


def test_snapshot_is_json_ready():
    tariff = DeliveryCost(
        carrier_name="TransOil",
        from_entity_id=uuid4(),
        cost_per_kg=Decimal("100.2500"),
    )
    data = snapshot(tariff)
    assert data["cost_per_kg"] == "100.25"
    assert isinstance(data["from_entity_id"], str)


def test_decode_restores_column_types():
    point = uuid4()
    data = {"cost_per_kg": "150", "from_entity_id": str(point), "carrier_name": "TransOil"}
    values = decode_snapshot(DeliveryCost, data, ["cost_per_kg", "from_entity_id", "carrier_name"])
    assert values == {
        "cost_per_kg": Decimal("150"),
        "from_entity_id": point,
        "carrier_name": "TransOil",
    }


def test_decode_skips_missing_and_unknown_fields():
    values = decode_snapshot(Customer, {"name": "Acme", "legacy": 1}, ["name", "legacy", "phone"])
    assert values == {"name": "Acme"}


def test_decode_rejects_malformed_values():
    with pytest.raises(ValueError):
        decode_value(DeliveryCost, "cost_per_kg", "not-a-number")
    assert decode_value(DeliveryCost, "distance", None) is None
