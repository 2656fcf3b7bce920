"""
Shared fixtures for directory tests.

Upstream HTTP is faked by patching ``requests.get`` as seen from the client
module; the fake routes by collection URL and returns the fixture data below.
"""

import copy
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest


def iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def mock_response(payload, status_code=200, reason="OK"):
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload
    return response


def _team(count):
    return [
        {
            "_id": f"tm{i}",
            "name": f"Member {i}",
            "title": "Engineer",
            "email": f"member{i}@acme.io",
            "image": "",
            "linkedinUrl": f"https://linkedin.com/in/member{i}",
            "price": 50,
            "bookingMethods": ["email"],
            "status": "active",
            "followers": 10 * i,
            "responseRate": 90,
        }
        for i in range(1, count + 1)
    ]


COMPANIES = [
    {
        "_id": "c1",
        "name": "Acme AI",
        "slug": "acme",
        "shortDescription": "Agents for everyone",
        "detail": "Long-form detail about Acme.",
        "category": "AI",
        "logo": "https://cdn.blockza.io/acme.png",
        "banner": "https://cdn.blockza.io/acme-banner.png",
        "founderName": "Ada Founder",
        "founderDetails": "Serial founder",
        "founderEmail": "ada@acme.io",
        "founderImage": "https://cdn.blockza.io/ada.png",
        "verificationStatus": "verified",
        "url": "https://acme.io",
        "isPromoted": True,
        "likes": 10,
        "views": 100,
        "socialLinks": {
            "facebook": "", "linkedin": "https://linkedin.com/acme",
            "telegram": "", "twitter": "https://x.com/acme", "youtube": "",
        },
        "promotionSettings": {"hasAffiliateProgram": True, "interestedInBusinessPartnership": True},
        "teamMembers": _team(3),
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-06-01T00:00:00.000Z",
        "followerPrice": 5,
        "founderFollowers": 1200,
        "founderResponseRate": 95,
    },
    {
        "_id": "c2",
        "name": "Acme Labs",
        "slug": "acme-labs",
        "shortDescription": "Research arm",
        "detail": "",
        "category": "AI",
        "founderName": "Bob",
        "verificationStatus": "pending",
        "url": "https://labs.acme.io",
        "isPromoted": False,
        "likes": 50,
        "views": 500,
        "socialLinks": {},
        "promotionSettings": {"hasAffiliateProgram": False, "interestedInBusinessPartnership": False},
        "teamMembers": [],
    },
    {
        "_id": "c3",
        "name": "Yield Co",
        "slug": "yield-co",
        "shortDescription": "DeFi yields",
        "category": "DeFi",
        "founderName": "Cy",
        "verificationStatus": "verified",
        "url": "https://yield.co",
        "isPromoted": False,
        "likes": 3,
        "views": 7,
        "socialLinks": None,
        "promotionSettings": {"hasAffiliateProgram": True, "interestedInBusinessPartnership": False},
        "teamMembers": None,
    },
]


def build_events(now):
    return [
        {
            "_id": "e-past",
            "title": "Past Summit",
            "company": "Acme AI",
            "description": "Already happened",
            "location": "Expo Hall",
            "country": "Germany",
            "city": "Berlin",
            "eventStartDate": iso(now - timedelta(days=1)),
            "eventEndDate": iso(now - timedelta(hours=12)),
            "category": "Conference",
            "website": "https://past.example",
            "featuredImage": "",
            "socialLinks": {"linkedin": "", "telegram": "", "twitter": "", "instagram": ""},
            "__v": 0,
        },
        {
            "_id": "e-far",
            "title": "Far Hackathon",
            "company": "Yield Co",
            "description": "DeFi building weekend",
            "location": "Hub",
            "country": "Portugal",
            "city": "Lisbon",
            "eventStartDate": iso(now + timedelta(days=10)),
            "eventEndDate": iso(now + timedelta(days=12)),
            "category": "Hackathon",
            "website": "https://far.example",
            "featuredImage": "",
            "socialLinks": {"twitter": "https://x.com/far"},
        },
        {
            "_id": "e-soon",
            "title": "Soon Meetup",
            "company": "Acme AI",
            "description": "AI agents meetup",
            "location": "Cafe",
            "country": "Germany",
            "city": "Munich",
            "eventStartDate": iso(now + timedelta(days=1)),
            "eventEndDate": iso(now + timedelta(days=1, hours=3)),
            "category": "Meetup",
            "website": "https://soon.example",
            "featuredImage": "",
            "socialLinks": {},
        },
    ]


PODCASTS = [
    {
        "_id": "p1",
        "title": "Agents Weekly",
        "description": "Talking agents",
        "company": "Acme AI",
        "category": "AI",
        "status": "published",
        "host": "Ada Founder",
        "url": "https://pods.example/agents",
        "image": "",
        "likes": 4,
        "views": 40,
    },
    {
        "_id": "p2",
        "title": "Yield Talk",
        "description": "DeFi chat",
        "company": "Yield Co",
        "category": "DeFi",
        "status": "draft",
        "host": "Cy",
        "url": "https://pods.example/yield",
        "likes": 1,
        "views": 10,
    },
]


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def directory_data(now):
    """Mutable copies of the fixture collections."""
    return {
        "directory": {"success": True, "data": copy.deepcopy(COMPANIES)},
        "events": build_events(now),
        "podcasts": copy.deepcopy(PODCASTS),
    }


@pytest.fixture
def upstream(directory_data):
    """Patch requests.get to serve directory_data by collection URL."""
    def fake_get(url, params=None, timeout=None):
        collection = url.rstrip("/").rsplit("/", 1)[-1]
        return mock_response(copy.deepcopy(directory_data[collection]))

    with patch("blockza_mcp.client.requests.get", side_effect=fake_get) as mock_get:
        yield mock_get


@pytest.fixture
def upstream_down():
    """Every upstream request answers 503."""
    with patch(
        "blockza_mcp.client.requests.get",
        return_value=mock_response(None, status_code=503, reason="Service Unavailable"),
    ) as mock_get:
        yield mock_get
