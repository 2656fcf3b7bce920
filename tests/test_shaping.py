# Unit tests for response shaping and record parsing

# region imports
from datetime import datetime, timedelta, timezone

import pytest

from blockza_mcp.entities import Company, Event, Podcast, parse_timestamp, parse_company_envelope
from blockza_mcp.errors import UpstreamError, NotFoundError
from blockza_mcp.shaping import (
    average,
    company_details,
    directory_stats,
    distinct_sorted,
    event_status,
    events_stats,
    format_data_block,
    format_location,
    podcast_stats,
    sort_by_start,
    truncate,
)

from conftest import COMPANIES
# endregion

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# region parsing
def test_parse_timestamp_variants():
    assert parse_timestamp("2026-03-01T12:00:00.000Z") == NOW
    assert parse_timestamp("2026-03-01T12:00:00") == NOW
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_company_tolerates_null_blocks():
    company = Company.model_validate(COMPANIES[2])
    assert company.team_members == []
    assert company.social_links.twitter is None
    assert company.promotion_settings.has_affiliate_program is True


def test_null_fields_fall_back_to_defaults():
    raw = dict(COMPANIES[0], name=None, slug=None, isPromoted=None, likes=None)
    raw["promotionSettings"] = {"hasAffiliateProgram": None, "interestedInBusinessPartnership": None}
    raw["teamMembers"] = [dict(raw["teamMembers"][0], bookingMethods=None)]
    company = Company.model_validate(raw)
    assert company.name == ""
    assert company.slug == ""
    assert company.is_promoted is False
    assert company.likes == 0
    assert company.promotion_settings.has_affiliate_program is False
    assert company.team_members[0].booking_methods == []

    assert Event.model_validate({"_id": "e1", "title": None}).title == ""
    assert Podcast.model_validate({"_id": "p1", "title": None}).title == ""


def test_null_unknown_fields_are_kept():
    company = Company.model_validate({"_id": "c9", "name": "X", "slug": "x", "tokenSymbol": None})
    assert company.to_document()["tokenSymbol"] is None


def test_company_keeps_unknown_fields():
    company = Company.model_validate({"_id": "c9", "name": "X", "slug": "x", "tokenSymbol": "XYZ"})
    assert company.to_document()["tokenSymbol"] == "XYZ"


def test_envelope_requires_success_flag():
    with pytest.raises(UpstreamError, match="unsuccessful"):
        parse_company_envelope({"data": []})
    with pytest.raises(UpstreamError):
        parse_company_envelope({"success": True, "data": {"not": "a list"}})


def test_not_found_message():
    assert str(NotFoundError("Company", "acme")) == "Company not found: acme"


def test_http_error_message():
    error = UpstreamError.from_status(404, "Not Found")
    assert str(error) == "HTTP 404: Not Found"
    assert error.status == 404
# endregion

# region helpers
def test_format_data_block():
    text = format_data_block("COMPANIES_DATA", [], "Found 0 companies.")
    assert text == "COMPANIES_DATA_START\n[]\nCOMPANIES_DATA_END\n\nFound 0 companies."


def test_format_location():
    assert format_location("Lisbon", "Portugal") == "Lisbon, Portugal"
    assert format_location(None, "Portugal") == "Portugal"
    assert format_location("", "") == ""


def test_distinct_sorted_drops_empty():
    assert distinct_sorted(["DeFi", "", None, "AI", "DeFi"]) == ["AI", "DeFi"]


def test_distinct_sorted_drops_blank():
    assert distinct_sorted(["  ", "Lisbon", "\t", "Berlin"]) == ["Berlin", "Lisbon"]


def test_average_of_nothing_is_zero():
    assert average(0, 0) == 0
    assert average(10, 3) == 3.33


def test_truncate():
    assert truncate([1, 2, 3], 2) == [1, 2]
    assert truncate([1, 2, 3], None) == [1, 2, 3]


def test_sort_by_start_puts_undated_last():
    events = [
        Event(id="undated", title="?", event_start_date="TBD"),
        Event(id="late", title="Late", event_start_date="2026-05-01T00:00:00Z"),
        Event(id="early", title="Early", event_start_date="2026-04-01T00:00:00Z"),
    ]
    assert [event.id for event in sort_by_start(events)] == ["early", "late", "undated"]
# endregion

# region projections
def test_company_details_team_only_when_requested():
    company = Company.model_validate(COMPANIES[0])
    assert "team_members" not in company_details(company)
    with_team = company_details(company, include_team=True)
    assert with_team["team_members"][0]["linkedinUrl"] == "https://linkedin.com/in/member1"
    assert with_team["social_links"]["twitter"] == "https://x.com/acme"


def test_directory_stats_empty():
    stats = directory_stats([])
    assert stats["total_companies"] == 0
    assert stats["average_likes_per_company"] == 0
    assert stats["average_views_per_company"] == 0
    assert stats["categories"] == []


def test_event_status():
    ongoing = Event(
        id="o", title="Now",
        event_start_date=(NOW - timedelta(hours=1)).isoformat(),
        event_end_date=(NOW + timedelta(hours=1)).isoformat(),
    )
    upcoming = Event(id="u", title="Soon", event_start_date=(NOW + timedelta(days=1)).isoformat())
    undated = Event(id="x", title="Unknown")
    assert event_status(ongoing, NOW) == "Ongoing"
    assert event_status(upcoming, NOW) == "Upcoming"
    assert event_status(undated, NOW) == "Past"


def test_events_stats_counts_undated_as_past():
    events = [
        Event(id="a", title="A", country="Germany", city="", event_start_date=(NOW + timedelta(days=2)).isoformat()),
        Event(id="b", title="B", country="Germany", city="Berlin"),
    ]
    stats = events_stats(events, NOW)
    assert stats["upcoming_events"] == 1
    assert stats["past_events"] == 1
    assert stats["countries"] == ["Germany"]
    assert stats["cities"] == ["Berlin"]


def test_podcast_stats_empty():
    stats = podcast_stats([])
    assert stats["total_podcasts"] == 0
    assert stats["status_counts"] == {}
    assert stats["average_views_per_podcast"] == 0


def test_podcast_stats_counts_statuses():
    podcasts = [
        Podcast(id="1", title="a", status="published", likes=2, views=3),
        Podcast(id="2", title="b", status="published", likes=1, views=0),
        Podcast(id="3", title="c", status=None),
    ]
    stats = podcast_stats(podcasts)
    assert stats["status_counts"] == {"published": 2}
    assert stats["average_likes_per_podcast"] == 1.0
# endregion
