import pytest

from utme_cbt.core.dedup import Deduplicator


def test_mark_and_check():
    dedup = Deduplicator(capacity=10, eviction_fraction=0.2)
    assert not dedup.is_used("q1")
    dedup.mark_used("q1")
    assert dedup.is_used("q1")
    assert dedup.used_count() == 1


def test_mark_used_is_idempotent():
    dedup = Deduplicator(capacity=10, eviction_fraction=0.2)
    dedup.mark_used("q1")
    dedup.mark_used("q1")
    assert dedup.used_count() == 1


def test_eviction_drops_oldest_fraction():
    dedup = Deduplicator(capacity=10, eviction_fraction=0.2)
    for i in range(11):
        dedup.mark_used(f"q{i}")

    # 11 entries over a capacity of 10: ceil(11 * 0.2) = 3 oldest removed
    assert dedup.used_count() == 8
    for i in range(3):
        assert not dedup.is_used(f"q{i}")
    for i in range(3, 11):
        assert dedup.is_used(f"q{i}")


def test_size_never_exceeds_capacity_for_long():
    dedup = Deduplicator(capacity=5, eviction_fraction=0.2)
    for i in range(100):
        dedup.mark_used(f"q{i}")
        assert dedup.used_count() <= 5


def test_clear_returns_count():
    dedup = Deduplicator(capacity=10, eviction_fraction=0.5)
    dedup.mark_used("a")
    dedup.mark_used("b")
    assert dedup.clear() == 2
    assert dedup.used_count() == 0
    assert dedup.stats() == {"used_questions": 0, "capacity": 10, "eviction_fraction": 0.5}


@pytest.mark.parametrize("capacity,fraction", [(0, 0.2), (10, 0.0), (10, 1.5)])
def test_rejects_bad_settings(capacity, fraction):
    with pytest.raises(ValueError):
        Deduplicator(capacity=capacity, eviction_fraction=fraction)
