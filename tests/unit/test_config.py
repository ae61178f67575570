"""
Unit tests for configuration parsing
"""

import pytest

from config import parse_bool


@pytest.mark.parametrize("value", [False, 0, "false", "False", "0", "no", "off", "", " OFF "])
def test_parse_bool_false_values(value):
    assert parse_bool(value) is False


@pytest.mark.parametrize("value", [True, 1, "true", "1", "yes", "on"])
def test_parse_bool_true_values(value):
    assert parse_bool(value) is True
