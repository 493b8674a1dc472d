"""Money, order numbers and delivery payloads."""
from decimal import Decimal

import pytest

from core.domain.enums import DeliveryType
from core.domain.exceptions import ValidationFailed
from core.domain.value_objects import DeliveryInfo, ExecutionID, Money, OrderNumber


class TestMoney:

    def test_amount_is_coerced_to_decimal(self):
        assert Money(10).amount == Decimal("10")
        assert Money("0.1").amount == Decimal("0.1")

    def test_currency_must_be_iso_code(self):
        with pytest.raises(ValueError):
            Money(Decimal("1"), "RUBLE")

    def test_arithmetic_rejects_mixed_currencies(self):
        with pytest.raises(ValueError):
            Money(Decimal("1"), "RUB") + Money(Decimal("1"), "USD")

    def test_percent_rounds_half_up_to_kopecks(self):
        assert Money(Decimal("333.33")).percent(Decimal("15")).amount == Decimal("50.00")
        assert Money(Decimal("0.05")).percent(Decimal("50")).amount == Decimal("0.03")

    def test_gateway_value_has_two_places(self):
        assert Money(Decimal("200")).as_gateway_value() == "200.00"
        assert Money(Decimal("19.999")).as_gateway_value() == "20.00"


class TestOrderNumber:

    def test_generated_numbers_match_format(self):
        number = OrderNumber.generate()
        assert str(number).startswith("ORD-")
        parts = str(number).split("-")
        assert len(parts[1]) == 13 and parts[1].isdigit()
        assert len(parts[2]) == 3 and parts[2].isdigit()

    @pytest.mark.parametrize("value", ["", "ORD-123-001", "ord-1760870400123-042", "ORD-1760870400123-42"])
    def test_invalid_numbers_are_rejected(self, value):
        with pytest.raises(ValueError):
            OrderNumber(value)

    def test_tail(self):
        assert OrderNumber("ORD-1760870400123-042").tail(8) == "0123-042"


def test_execution_id_short_is_first_uuid_block():
    execution_id = ExecutionID.generate()
    assert str(execution_id).startswith(execution_id.short())
    assert len(execution_id.short()) == 8


class TestDeliveryInfo:

    def test_pickup_needs_only_a_phone(self):
        DeliveryInfo(phone="+7 900 123 45 67").validate_for(DeliveryType.PICKUP)

    def test_courier_requires_address_fields(self):
        with pytest.raises(ValidationFailed) as exc_info:
            DeliveryInfo(phone="+79001234567", city="Москва").validate_for(DeliveryType.COURIER)
        fields = {error["field"] for error in exc_info.value.errors}
        assert fields == {"address", "recipientName"}

    def test_short_phone_is_rejected(self):
        with pytest.raises(ValidationFailed) as exc_info:
            DeliveryInfo(phone="12345").validate_for(DeliveryType.PICKUP)
        assert exc_info.value.errors[0]["field"] == "phone"
        assert exc_info.value.to_dict()["code"] == "VALIDATION_ERROR"

    def test_whitespace_only_fields_count_as_missing(self):
        info = DeliveryInfo(phone="+79001234567", city="  ", address="ул. Ленина, 5", recipient_name="Пётр")
        with pytest.raises(ValidationFailed) as exc_info:
            info.validate_for(DeliveryType.POST)
        assert [e["field"] for e in exc_info.value.errors] == ["city"]
