"""Tests for one-off events and their parsing."""

import pytest
from housing_budget_jp.events import (
    OneOffEvent,
    build_event_map,
    event_total,
    events_from_config,
    parse_events,
)


class TestOneOffEvent:
    def test_known_category(self):
        e = OneOffEvent(1_000_000, "education")
        assert e.display_label == "education"

    def test_custom_requires_label(self):
        with pytest.raises(ValueError, match="label"):
            OneOffEvent(1_000_000)

    def test_custom_label(self):
        assert OneOffEvent(3_000_000, "custom", "車").display_label == "車"

    def test_unknown_category(self):
        with pytest.raises(ValueError, match="未知のイベント区分"):
            OneOffEvent(1_000_000, "travel")


class TestParseEvents:
    def test_empty(self):
        assert parse_events("") == {}
        assert parse_events("   ") == {}

    def test_custom_and_windfall(self):
        events = parse_events("3:3000000:車,10:-500000")
        assert list(events) == [3, 10]
        assert events[3] == (OneOffEvent(3_000_000, "custom", "車"),)
        assert events[10][0].amount == -500_000
        assert events[10][0].label == "-500,000円"

    def test_known_category_label(self):
        events = parse_events("2:100000:education")
        assert events[2][0].category == "education"

    def test_same_year_grouped(self):
        events = parse_events("1:100:a,1:200:b")
        assert len(events[1]) == 2
        assert event_total(events[1]) == 300

    def test_missing_amount(self):
        with pytest.raises(ValueError, match="形式が不正"):
            parse_events("3")

    def test_negative_year(self):
        with pytest.raises(ValueError, match="0以上"):
            parse_events("-1:100:a")


class TestBuildEventMap:
    def test_sorted_by_year(self):
        a = OneOffEvent(1, "other")
        b = OneOffEvent(2, "other")
        assert list(build_event_map([(5, a), (2, b)])) == [2, 5]


class TestEventsFromConfig:
    def test_tables_and_lists(self):
        events = events_from_config([
            {"year": 1, "amount": 100_000, "category": "housing"},
            [2, 200_000, "旅行"],
        ])
        assert events[1][0].category == "housing"
        assert events[2][0].category == "custom"
        assert events[2][0].label == "旅行"

    def test_table_without_category(self):
        events = events_from_config([{"year": 0, "amount": 50_000, "label": "tax"}])
        assert events[0][0].category == "tax"
