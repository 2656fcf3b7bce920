"""
Tests for the Blockza upstream client.

Tests cover:
- Query construction (absent filters omitted, booleans lower-cased)
- Envelope validation and HTTP failures
- Slug lookup (exact match, loose fallback, absent)
- Derived views: upcoming, by category, by location
"""

import pytest
import requests
from unittest.mock import patch

from blockza_mcp.client import BlockzaAPIClient, _query_params
from blockza_mcp.errors import UpstreamError, ValidationError

from conftest import mock_response


@pytest.fixture
def client():
    return BlockzaAPIClient()


# ============================================================================
# Query construction
# ============================================================================

def test_query_params_omit_absent_values():
    params = _query_params(limit=None, category="AI", search=None, verified=False)
    assert params == {"category": "AI", "verified": "false"}


def test_query_params_zero_limit_is_omitted():
    assert _query_params(limit=0) == {}
    assert _query_params(limit=5) == {"limit": "5"}


@pytest.mark.asyncio
async def test_get_companies_sends_filters(client, upstream):
    await client.get_companies(search="acme", verified=True)

    url = upstream.call_args.args[0]
    params = upstream.call_args.kwargs["params"]
    assert url == "https://api.blockza.io/api/directory"
    assert params == {"search": "acme", "verified": "true"}
    assert upstream.call_args.kwargs["timeout"] == client.timeout


# ============================================================================
# Envelope validation
# ============================================================================

@pytest.mark.asyncio
async def test_get_companies_parses_envelope(client, upstream):
    companies = await client.get_companies()
    assert [c.slug for c in companies] == ["acme", "acme-labs", "yield-co"]
    assert companies[0].social_links.twitter == "https://x.com/acme"
    assert len(companies[0].team_members) == 3
    assert companies[2].team_members == []


@pytest.mark.asyncio
async def test_category_filter_keeps_exact_category(client, upstream):
    companies = await client.get_companies(category="ai")
    assert {c.category for c in companies} == {"AI"}
    assert len(companies) == 2


@pytest.mark.asyncio
async def test_unsuccessful_envelope_raises(client):
    with patch("blockza_mcp.client.requests.get", return_value=mock_response({"success": False, "data": []})):
        with pytest.raises(UpstreamError):
            await client.get_companies()


@pytest.mark.asyncio
async def test_non_list_events_raise(client):
    with patch("blockza_mcp.client.requests.get", return_value=mock_response({"events": []})):
        with pytest.raises(UpstreamError):
            await client.get_events()


@pytest.mark.asyncio
async def test_malformed_json_raises(client):
    response = mock_response(None)
    response.json.side_effect = ValueError("Expecting value")
    with patch("blockza_mcp.client.requests.get", return_value=response):
        with pytest.raises(UpstreamError, match="Malformed JSON"):
            await client.get_podcasts()


@pytest.mark.asyncio
async def test_http_error_carries_status(client, upstream_down):
    with pytest.raises(UpstreamError) as excinfo:
        await client.get_events()
    assert excinfo.value.status == 503
    assert excinfo.value.status_text == "Service Unavailable"
    assert "HTTP 503" in str(excinfo.value)


@pytest.mark.asyncio
async def test_connection_error_is_upstream_error(client):
    with patch("blockza_mcp.client.requests.get", side_effect=requests.exceptions.ConnectionError("refused")):
        with pytest.raises(UpstreamError):
            await client.get_companies()


# ============================================================================
# Slug lookup
# ============================================================================

@pytest.mark.asyncio
async def test_slug_lookup_prefers_exact_match(client, upstream, directory_data):
    # Loose search returns both Acme records; the exact slug must win
    directory_data["directory"]["data"] = directory_data["directory"]["data"][:2][::-1]
    company = await client.get_company_by_slug("acme")
    assert company.slug == "acme"


@pytest.mark.asyncio
async def test_slug_lookup_exact_for_every_listed_slug(client, upstream):
    for slug in ("acme", "acme-labs", "yield-co"):
        company = await client.get_company_by_slug(slug)
        assert company.slug == slug


@pytest.mark.asyncio
async def test_slug_lookup_falls_back_to_first_result(client, upstream):
    company = await client.get_company_by_slug("acm")
    assert company.slug == "acme"


@pytest.mark.asyncio
async def test_slug_lookup_absent(client, upstream, directory_data):
    directory_data["directory"]["data"] = []
    assert await client.get_company_by_slug("nobody") is None


@pytest.mark.asyncio
async def test_slug_lookup_propagates_upstream_error(client, upstream_down):
    with pytest.raises(UpstreamError):
        await client.get_company_by_slug("acme")


# ============================================================================
# Events and podcasts
# ============================================================================

@pytest.mark.asyncio
async def test_get_event_by_id_exact(client, upstream):
    event = await client.get_event_by_id("e-soon")
    assert event.title == "Soon Meetup"
    assert await client.get_event_by_id("e-so") is None


@pytest.mark.asyncio
async def test_upcoming_events_at_fixed_time(client, upstream, now):
    events = await client.get_upcoming_events(now=now)
    assert {event.id for event in events} == {"e-far", "e-soon"}


@pytest.mark.asyncio
async def test_upcoming_events_degrade_to_empty(client, upstream_down):
    assert await client.get_upcoming_events() == []


@pytest.mark.asyncio
async def test_events_by_category_degrade_to_empty(client, upstream_down):
    assert await client.get_events_by_category("Meetup") == []


@pytest.mark.asyncio
async def test_events_by_location_requires_country_or_city(client, upstream):
    with pytest.raises(ValidationError):
        await client.get_events_by_location()
    upstream.assert_not_called()


@pytest.mark.asyncio
async def test_events_by_location_forwards_filters(client, upstream):
    await client.get_events_by_location(country="Germany")
    assert upstream.call_args.kwargs["params"] == {"country": "Germany"}


@pytest.mark.asyncio
async def test_get_podcasts_sends_filters(client, upstream):
    podcasts = await client.get_podcasts(company="Acme AI", status="published", limit=3)
    assert upstream.call_args.args[0] == "https://api.blockza.io/api/podcasts"
    assert upstream.call_args.kwargs["params"] == {"limit": "3", "company": "Acme AI", "status": "published"}
    assert len(podcasts) == 2


@pytest.mark.asyncio
async def test_get_podcast_by_id(client, upstream):
    podcast = await client.get_podcast_by_id("p2")
    assert podcast.title == "Yield Talk"
    assert podcast.to_document()["_id"] == "p2"
