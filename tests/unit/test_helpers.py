"""Tests for metric transform helpers."""

from app.services.metrics import calculate_rating, get_metric, sum_metrics


class TestRating:
    def test_no_votes(self):
        assert calculate_rating({"ThumbsUp": 0, "ThumbsDown": 0}) == {"rating": None, "rating_count": None}

    def test_mixed(self):
        assert calculate_rating({"ThumbsUp": 3, "ThumbsDown": 1}) == {"rating": 3.75, "rating_count": 4}

    def test_missing_metrics(self):
        assert calculate_rating(None) == {"rating": None, "rating_count": None}

    def test_custom_keys_and_scale(self):
        result = calculate_rating({"Like": 1, "Dislike": 2}, positive="Like", negative="Dislike", scale=10)
        assert result == {"rating": 3.33, "rating_count": 3}


class TestGetMetric:
    def test_absent_is_none(self):
        assert get_metric({"View": 1}, "Comment") is None
        assert get_metric(None, "View") is None

    def test_zero_is_zero(self):
        assert get_metric({"View": 0}, "View") == 0


class TestSumMetrics:
    def test_sum(self):
        assert sum_metrics({"ThumbsUp": 2, "ThumbsDown": 1}, ["ThumbsUp", "ThumbsDown", "Heart"]) == 3

    def test_none_when_absent(self):
        assert sum_metrics(None, ["ThumbsUp"]) is None
