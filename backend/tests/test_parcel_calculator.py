"""
Tests for parcel / desi calculation.
"""
import json

import pytest

from app.services.parcel_calculator import MAX_PARCEL_REPLICATION, calculate_parcels

from conftest import make_order, make_product


class TestPackageDetails:
    """Explicit package details on the payload win over everything else."""

    def test_empty_package_details_is_missing_info(self):
        order = make_order(raw_data={"package_details": []}, desi=7)
        result = calculate_parcels(order, make_product(parcel_desis=(10.0, 5.5)))

        assert result.parcels == []
        assert result.total_desi == 0
        assert result.is_missing_info is True

    def test_sums_package_details(self):
        order = make_order(raw_data={"package_details": [{"desi": 2}, {"desi": "3.5"}]}, desi=99)
        result = calculate_parcels(order, make_product())

        assert [p.desi for p in result.parcels] == [2.0, 3.5]
        assert result.total_desi == 5.5
        assert result.is_missing_info is False

    def test_invalid_and_negative_desi_count_as_zero(self):
        order = make_order(raw_data={"package_details": [{"desi": "abc"}, {"desi": -4}, {"desi": 1}]})
        result = calculate_parcels(order)

        assert [p.desi for p in result.parcels] == [0.0, 0.0, 1.0]
        assert result.total_desi == 1.0

    def test_all_zero_details_flag_missing_info(self):
        order = make_order(raw_data={"package_details": [{"desi": 0}]})
        result = calculate_parcels(order)

        assert result.total_desi == 0
        assert result.is_missing_info is True


class TestProductParcels:
    """Catalog parcels are replicated per ordered unit."""

    def test_infinite_line_quantity_counts_as_one(self):
        order = make_order(raw_data=json.loads('{"lines": [{"sku": "SOFA-01", "quantity": 1e400}]}'))
        result = calculate_parcels(order, make_product(parcel_desis=(10.0, 5.5)))

        assert len(result.parcels) == 2
        assert result.total_desi == 15.5

    def test_huge_quantity_is_capped(self):
        order = make_order(product_count=10**8)
        result = calculate_parcels(order, make_product(parcel_desis=(2.0,)))

        assert len(result.parcels) == MAX_PARCEL_REPLICATION
        assert result.total_desi == pytest.approx(2.0 * MAX_PARCEL_REPLICATION)

    def test_replicates_per_product_count(self):
        order = make_order(product_count=3)
        product = make_product(parcel_desis=(10.0, 5.5))

        result = calculate_parcels(order, product)

        assert len(result.parcels) == 6
        assert result.total_desi == pytest.approx(3 * 15.5)

    def test_quantity_from_first_line(self):
        order = make_order(raw_data={"lines": [{"merchantSku": "SOFA-01", "quantity": 2}]})
        result = calculate_parcels(order, make_product(parcel_desis=(4.0,)))

        assert len(result.parcels) == 2
        assert result.total_desi == 8.0

    def test_zero_quantity_still_ships_one_set(self):
        order = make_order(raw_data={"lines": [{"sku": "SOFA-01", "quantity": 0}]})
        result = calculate_parcels(order, make_product(parcel_desis=(4.0, 1.0)))

        assert len(result.parcels) == 2
        assert result.total_desi == 5.0

    def test_replicated_parcels_are_independent(self):
        order = make_order(product_count=2)
        result = calculate_parcels(order, make_product(parcel_desis=(4.0,)))

        result.parcels[0].desi = 100.0
        assert result.parcels[1].desi == 4.0


class TestScalarFallback:
    """Without parcel data the order's declared desi becomes a single parcel."""

    def test_uses_order_desi(self):
        result = calculate_parcels(make_order(desi=7.0))

        assert len(result.parcels) == 1
        assert result.parcels[0].count == 1
        assert result.total_desi == 7.0
        assert result.is_missing_info is False

    def test_uses_raw_desi(self):
        result = calculate_parcels(make_order(raw_data={"desi": "2.5"}))
        assert result.total_desi == 2.5

    def test_product_without_parcels_falls_back(self):
        result = calculate_parcels(make_order(desi=3.0), make_product(parcel_desis=()))
        assert result.total_desi == 3.0

    def test_nothing_known_is_missing_info(self):
        result = calculate_parcels(make_order())

        assert result.total_desi == 0
        assert result.is_missing_info is True

    def test_idempotent(self):
        order = make_order(product_count=2)
        product = make_product()

        first = calculate_parcels(order, product)
        second = calculate_parcels(order, product)

        assert first.total_desi == second.total_desi
        assert len(first.parcels) == len(second.parcels)
