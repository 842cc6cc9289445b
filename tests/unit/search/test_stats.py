"""Unit tests for classic TF-IDF helpers."""

import math

import pytest

from tinydancer.search.stats import (
    CollectionStats,
    calculate_idf,
    classic_score,
    length_norm,
    tf_weight,
)


@pytest.mark.unit
def test_tf_weight_is_sublinear():
    assert tf_weight(0) == 0.0
    assert tf_weight(1) == 1.0
    assert tf_weight(4) == pytest.approx(1 + math.log(4))


@pytest.mark.unit
def test_idf_matches_classic_formula():
    assert calculate_idf(1, 2) == pytest.approx(1.0)
    assert calculate_idf(0, 10) == pytest.approx(1 + math.log(10))


@pytest.mark.unit
def test_idf_stays_positive_when_every_document_matches():
    assert calculate_idf(10, 10) > 0


@pytest.mark.unit
def test_idf_for_empty_collection_is_zero():
    assert calculate_idf(0, 0) == 0.0


@pytest.mark.unit
def test_length_norm_treats_empty_document_as_one_token():
    assert length_norm(0) == 1.0
    assert length_norm(4) == pytest.approx(0.5)


@pytest.mark.unit
def test_classic_score_squares_idf():
    assert classic_score(1, 2.0, 0.5, boost=3.0) == pytest.approx(6.0)
    assert classic_score(0, 2.0, 0.5) == 0.0


@pytest.mark.unit
def test_collection_stats_average_length():
    assert CollectionStats(document_count=4, term_count=9, total_tokens=10).average_length == 2.5
    assert CollectionStats(document_count=0, term_count=0, total_tokens=0).average_length == 0.0
