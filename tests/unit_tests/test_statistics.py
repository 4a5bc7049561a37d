"""Unit tests for size deltas and batch statistics."""

import math

import pytest

from shrink_ray.domain.statistics import Delta, Statistics


def test_shrinking_delta():
    delta = Delta(10_000_000, 6_000_000)
    assert delta.is_smaller()
    assert delta.difference() == 4_000_000
    assert delta.ratio() == pytest.approx(0.4)


def test_growing_delta():
    delta = Delta(1000, 1500)
    assert not delta.is_smaller()
    assert delta.difference() == 500
    assert delta.ratio() == pytest.approx(0.5)


def test_equal_sizes_count_as_smaller():
    delta = Delta(1234, 1234)
    assert delta.is_smaller()
    assert delta.difference() == 0


def test_ratio_of_empty_original():
    assert Delta(0, 0).ratio() == 0.0
    assert math.isinf(Delta(0, 10).ratio())


def test_statistics_fold_deltas():
    stats = Statistics()
    stats.shrink(Delta(1000, 600))
    stats.shrink(Delta(500, 500))
    stats.grow(Delta(200, 300))
    stats.skip()
    stats.fail()
    stats.fail()

    assert (stats.shrunk, stats.grew, stats.skipped, stats.failed) == (2, 1, 1, 2)
    assert stats.processed == 1700
    assert stats.saved == 400
    assert stats.wasted == 100
    assert stats.delta() == Delta(1700, 1400)
    assert stats.delta().is_smaller()


def test_empty_statistics():
    assert Statistics().delta() == Delta(0, 0)
