"""Tests for the loose value comparisons."""

from fodmapdb.core.values import as_number, compare_values, values_equal


class TestValuesEqual:

    def test_identical_values(self):
        assert values_equal(5, 5)
        assert values_equal("Desayuno", "Desayuno")

    def test_number_matches_its_string_form(self):
        assert values_equal(5, "5")
        assert values_equal("5", 5)
        assert values_equal(2.5, "2.5")

    def test_number_does_not_match_other_strings(self):
        assert not values_equal(5, "6")
        assert not values_equal(5, "five")

    def test_none_only_equals_none(self):
        assert values_equal(None, None)
        assert not values_equal(None, "")
        assert not values_equal(0, None)

    def test_other_types_compare_as_strings(self):
        assert values_equal(["a"], "['a']")
        assert not values_equal(True, 1)


class TestCompareValues:

    def test_orders_strings_and_numbers(self):
        assert compare_values("2024-01-01", "2024-01-31") == -1
        assert compare_values(3, 2) == 1
        assert compare_values(2, 2.0) == 0

    def test_numeric_string_against_number(self):
        assert compare_values("10", 9) == 1

    def test_incomparable_pairs(self):
        assert compare_values(None, 1) is None
        assert compare_values("abc", 1) is None
        assert compare_values({}, []) is None


def test_as_number():
    assert as_number(3) == 3
    assert as_number("2") == 2
    assert as_number(None) == 0
    assert as_number("lots") == 0
    assert as_number(True) == 0
