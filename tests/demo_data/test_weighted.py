"""
Tests for weighted selection, slug and formatting helpers.
"""

import random
from datetime import date, datetime

import pytest

from src.demo_data.slugs import slugify, unique_slug
from src.demo_data.models import at_midnight, first_token, hour_string
from src.demo_data.weighted import cycle_choice, percent_chance, weighted_choice


class _ScriptedRng:
    def __init__(self, ints):
        self.ints = list(ints)
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        return self.ints.pop(0)

    def random(self):
        return 0.5

    def choice(self, seq):
        return seq[0]

    def shuffle(self, x):
        pass


RATINGS = [(5, 50), (4, 35), (3, 15)]


@pytest.mark.parametrize(
    "draw,expected",
    [(1, 5), (50, 5), (51, 4), (85, 4), (86, 3), (100, 3)],
)
def test_weighted_choice_cumulative_thresholds(draw, expected):
    rng = _ScriptedRng([draw])
    assert weighted_choice(RATINGS, rng) == expected
    assert rng.calls == [(1, 100)]


def test_weighted_choice_single_value():
    assert weighted_choice([("only", 3)], _ScriptedRng([2])) == "only"


def test_weighted_choice_rejects_empty_pairs():
    with pytest.raises(ValueError):
        weighted_choice([], _ScriptedRng([1]))


def test_weighted_choice_rejects_zero_total():
    with pytest.raises(ValueError):
        weighted_choice([("a", 0), ("b", 0)], _ScriptedRng([1]))


def test_weighted_choice_distribution_roughly_matches_weights():
    rng = random.Random(42)
    draws = [weighted_choice(RATINGS, rng) for _ in range(5000)]
    share_of_fives = draws.count(5) / len(draws)
    assert 0.45 < share_of_fives < 0.55
    assert set(draws) == {3, 4, 5}


def test_cycle_choice_wraps():
    values = ["accepted", "rejected", "rejected", "rejected"]
    assert [cycle_choice(values, i) for i in range(6)] == [
        "accepted", "rejected", "rejected", "rejected", "accepted", "rejected",
    ]


def test_cycle_choice_rejects_empty():
    with pytest.raises(ValueError):
        cycle_choice([], 0)


def test_percent_chance_boundaries():
    assert percent_chance(_ScriptedRng([60]), 60) is True
    assert percent_chance(_ScriptedRng([61]), 60) is False


def test_time_helpers():
    assert at_midnight(date(2024, 3, 9)) == datetime(2024, 3, 9, 0, 0, 0)
    assert hour_string(9) == "09:00:00"
    assert hour_string(21) == "21:00:00"
    assert first_token("Marcus Johnson") == "Marcus"
    assert first_token("Cher") == "Cher"


def test_slugify():
    assert slugify('Marcus "The Magnificent" Johnson') == "marcus-the-magnificent-johnson"
    assert slugify("  DJ  Spark_Plug ") == "dj-spark-plug"
    assert slugify("Café Noël") == "cafe-noel"
    assert slugify("!!!") == ""


def test_unique_slug_appends_counter():
    taken = {"sam", "sam-1"}
    assert unique_slug("sam", lambda s: s in taken) == "sam-2"
    assert unique_slug("alex", lambda s: s in taken) == "alex"
