"""
Tests for marketplace payload adapters.
"""
import pytest

from app.services.order_lines import (
    PLACEHOLDER_PHONE,
    candidate_product_codes,
    extract_lines,
    extract_shipping_address,
    order_quantity,
    resolve_product_identity,
)

from conftest import make_order


class TestExtractLines:

    def test_trendyol_lines(self):
        lines = extract_lines({"lines": [{"merchantSku": "A-1", "quantity": 2, "productName": "Lamp"}]})

        assert len(lines) == 1
        assert lines[0].sku == "A-1"
        assert lines[0].quantity == 2
        assert lines[0].product_name == "Lamp"

    def test_hepsiburada_items(self):
        lines = extract_lines({"items": [{"sku": "HB-9", "name": "Chair"}]})

        assert lines[0].sku == "HB-9"
        assert lines[0].quantity == 1
        assert lines[0].product_name == "Chair"

    def test_woocommerce_line_items(self):
        lines = extract_lines({"line_items": [{"productCode": "W-3", "quantity": "4"}]})

        assert lines[0].sku == "W-3"
        assert lines[0].quantity == 4

    def test_priority_order(self):
        raw = {"lines": [{"sku": "FROM-LINES"}], "items": [{"sku": "FROM-ITEMS"}]}
        assert extract_lines(raw)[0].sku == "FROM-LINES"

    def test_empty_array_falls_through(self):
        raw = {"lines": [], "items": [{"barcode": "869000"}]}
        assert extract_lines(raw)[0].sku == "869000"

    def test_no_lines(self):
        assert extract_lines(None) == []
        assert extract_lines({"lines": "not-a-list"}) == []


class TestProductIdentity:

    def test_explicit_fields_win(self):
        order = make_order(product_code="EXPLICIT", product_name="Explicit name",
                           raw_data={"lines": [{"sku": "LINE", "productName": "Line name"}]})

        assert resolve_product_identity(order) == ("EXPLICIT", "Explicit name")

    def test_first_line_fallback(self):
        order = make_order(raw_data={"lines": [{"merchantSku": "LINE-1", "productName": "Line"}, {"sku": "LINE-2"}]})

        assert resolve_product_identity(order) == ("LINE-1", "Line")

    def test_missing_everything(self):
        assert resolve_product_identity(make_order()) == ("", "")

    def test_candidate_codes_deduplicated(self):
        order = make_order(product_code="A", raw_data={"items": [{"sku": "A"}, {"sku": "B"}]})

        assert candidate_product_codes(order) == ["A", "B"]

    def test_order_quantity(self):
        assert order_quantity(make_order(product_count=5)) == 5
        assert order_quantity(make_order(raw_data={"lines": [{"quantity": 3}]})) == 3
        assert order_quantity(make_order()) == 1

    @pytest.mark.parametrize("quantity", [float("inf"), float("-inf"), float("nan"), "1e400", "lots", None])
    def test_unusable_quantity_defaults_to_one(self, quantity):
        assert order_quantity(make_order(raw_data={"lines": [{"quantity": quantity}]})) == 1


class TestShippingAddress:

    def test_shipment_address_block(self):
        raw = {"shipmentAddress": {"fullAddress": "Ataturk Cad. 1", "city": "Istanbul",
                                   "district": "Kadikoy", "phone": "05321112233"}}
        address = extract_shipping_address(raw)

        assert address.full_address == "Ataturk Cad. 1"
        assert address.city == "Istanbul"
        assert address.district == "Kadikoy"
        assert address.phone == "05321112233"

    def test_woocommerce_shipping_with_billing_phone(self):
        raw = {"shipping": {"address_1": "Main St 5", "city": "Izmir"}, "billing": {"phone": "05001112233"}}
        address = extract_shipping_address(raw)

        assert address.full_address == "Main St 5"
        assert address.phone == "05001112233"

    def test_empty_payload(self):
        address = extract_shipping_address({})

        assert address.full_address == ""
        assert address.phone == ""
        assert PLACEHOLDER_PHONE == "5555555555"
