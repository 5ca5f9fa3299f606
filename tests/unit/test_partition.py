"""
Unit Tests for Work Partitioning
================================
"""

import pytest

from pricetag_renderer.core.partition import compute_worker_count, partition_work
from pricetag_renderer.core.store import select_pending
from pricetag_renderer.models.schemas import Product

from tests.utils.helpers import make_record, merge_round_robin


def _products(count):
    return [Product.model_validate(make_record(f"P{i}", float(i + 1))) for i in range(count)]


class TestComputeWorkerCount:
    """Test worker pool sizing."""

    @pytest.mark.parametrize(
        "cpus, expected",
        [(1, 1), (2, 1), (4, 3), (8, 6), (16, 12), (6, 4)],
    )
    def test_three_quarters_of_cpus(self, cpus, expected):
        assert compute_worker_count(cpus) == expected

    def test_custom_fraction(self):
        assert compute_worker_count(10, fraction=0.5) == 5

    def test_defaults_to_machine_cpu_count(self, monkeypatch):
        monkeypatch.setattr("pricetag_renderer.core.partition.os.cpu_count", lambda: 8)
        assert compute_worker_count() == 6

    def test_unknown_cpu_count(self, monkeypatch):
        monkeypatch.setattr("pricetag_renderer.core.partition.os.cpu_count", lambda: None)
        assert compute_worker_count() == 1


class TestPartitionWork:
    """Test round-robin distribution."""

    def test_round_robin_assignment(self):
        products = _products(7)
        groups = partition_work(products, products, 3)
        assert [[item.index for item in group] for group in groups] == [[0, 3, 6], [1, 4], [2, 5]]

    @pytest.mark.parametrize("count, workers", [(10, 3), (9, 3), (5, 5), (12, 1), (7, 4)])
    def test_balanced_and_reconstructible(self, count, workers):
        products = _products(count)
        groups = partition_work(products, products, workers)

        sizes = [len(group) for group in groups]
        assert len(groups) == workers
        assert max(sizes) - min(sizes) <= 1
        assert [item.product for item in merge_round_robin(groups)] == products

    def test_more_workers_than_items_leaves_empty_groups(self):
        products = _products(2)
        groups = partition_work(products, products, 4)
        assert [len(group) for group in groups] == [1, 1, 0, 0]

    def test_indexes_point_into_full_collection(self, sample_products):
        pending = select_pending(sample_products)
        groups = partition_work(sample_products, pending, 1)
        assert [(item.index, item.product.image_stem) for item in groups[0]] == [
            (1, "B2_red"),
            (2, "C3"),
        ]
        for item in groups[0]:
            assert sample_products[item.index].identity_key == item.product.identity_key

    def test_empty_suffix_matches_missing_suffix(self):
        collection = [
            Product.model_validate(make_record("X", 1.0, suffix="big")),
            Product.model_validate(make_record("X", 2.0)),
        ]
        pending = [Product.model_validate(make_record("X", 2.0, suffix=""))]
        groups = partition_work(collection, pending, 1)
        assert groups[0][0].index == 1

    def test_duplicate_keys_resolve_to_first_occurrence(self):
        collection = _products(1) + _products(1)
        groups = partition_work(collection, [collection[1]], 1)
        assert groups[0][0].index == 0

    def test_no_pending(self):
        assert partition_work(_products(3), [], 2) == [[], []]

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError, match="at least 1"):
            partition_work(_products(1), _products(1), 0)

    def test_unknown_product(self):
        unknown = Product.model_validate(make_record("nope", 1.0))
        with pytest.raises(ValueError, match="not part of the collection"):
            partition_work(_products(2), [unknown], 1)
