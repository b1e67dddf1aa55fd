from datetime import time

import pytest

from utils.formatting import category_label, format_stop_duration, format_time_12h, parse_time_of_day


def test_parse_time_of_day():
    assert parse_time_of_day("22:00") == time(22, 0)
    assert parse_time_of_day(" 07:05:30 ") == time(7, 5, 30)
    assert parse_time_of_day("") is None
    assert parse_time_of_day(None) is None
    with pytest.raises(ValueError):
        parse_time_of_day("25:99")


def test_format_time_12h():
    assert format_time_12h(time(22, 0)) == "10:00 PM"
    assert format_time_12h(time(0, 5)) == "12:05 AM"
    assert format_time_12h(None) == "-"


def test_stop_duration_defaults_to_five_minutes():
    assert format_stop_duration(None) == "5 minutes"
    assert format_stop_duration(0) == "0 minutes"
    assert format_stop_duration(12) == "12 minutes"


def test_category_label():
    assert category_label("limited_stop") == "limited stop"
    assert category_label(None) == ""


def test_stop_duration_default_follows_config(app):
    app.config["DEFAULT_STOP_DURATION"] = 10
    assert format_stop_duration(None) == "10 minutes"
