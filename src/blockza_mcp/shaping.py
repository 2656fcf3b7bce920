"""
Response shaping shared by tool, resource and prompt handlers.

Projections here define the stable output schema for each record kind;
handlers never build these dicts inline.
"""

import json
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .entities import Company, Event, Podcast, TeamMember

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2)


def format_data_block(tag: str, data: Any, summary: str) -> str:
    """Wrap JSON in ``<TAG>_START`` / ``<TAG>_END`` delimiters followed by a summary line."""
    return f"{tag}_START\n{to_json(data)}\n{tag}_END\n\n{summary}"


def format_location(city: Optional[str], country: Optional[str]) -> str:
    return ", ".join(part for part in (city, country) if part)


def distinct_sorted(values: Iterable[Optional[str]]) -> List[str]:
    """Distinct non-blank values, sorted ascending."""
    return sorted({value for value in values if value and value.strip()})


def average(total: float, count: int) -> float:
    return round(total / count, 2) if count else 0


def sort_by_start(events: Iterable[Event]) -> List[Event]:
    """Ascending by start time; events without a parseable start go last."""
    return sorted(events, key=lambda event: event.start_time or _FAR_FUTURE)


def truncate(items: List[Any], limit: Optional[int]) -> List[Any]:
    return items[:limit] if limit else items


# ============================================================================
# Companies
# ============================================================================

def company_summary(company: Company) -> Dict[str, Any]:
    return {
        "_id": company.id,
        "name": company.name,
        "slug": company.slug,
        "category": company.category,
        "shortDescription": company.short_description,
        "logo": company.logo,
        "banner": company.banner,
        "founderName": company.founder_name,
        "verificationStatus": company.verification_status,
        "url": company.url,
        "likes": company.likes,
        "views": company.views,
    }


def team_member_summary(member: TeamMember) -> Dict[str, Any]:
    return {
        "name": member.name,
        "title": member.title,
        "email": member.email,
        "linkedin": member.linkedin_url,
        "image": member.image,
        "status": member.status,
        "followers": member.followers,
        "responseRate": member.response_rate,
        "price": member.price,
        "bookingMethods": member.booking_methods,
    }


def company_details(company: Company, include_team: bool = False) -> Dict[str, Any]:
    """Full company view; ``team_members`` is present only when requested."""
    details = {
        "basic_info": {
            "name": company.name,
            "slug": company.slug,
            "category": company.category,
            "shortDescription": company.short_description,
            "detail": company.detail,
            "logo": company.logo,
            "banner": company.banner,
            "url": company.url,
            "verificationStatus": company.verification_status,
        },
        "founder": {
            "name": company.founder_name,
            "details": company.founder_details,
            "email": company.founder_email,
            "image": company.founder_image,
            "followers": company.founder_followers,
            "responseRate": company.founder_response_rate,
        },
        "social_links": company.social_links.to_document(),
        "promotion_settings": company.promotion_settings.to_document(),
        "stats": {
            "likes": company.likes,
            "views": company.views,
            "followerPrice": company.follower_price,
        },
    }
    if include_team:
        details["team_members"] = [member.to_document() for member in company.team_members]
    return details


def company_comparison_entry(company: Company) -> Dict[str, Any]:
    return {
        "name": company.name,
        "description": company.short_description,
        "founder": company.founder_name,
        "verification": company.verification_status,
        "engagement": {"likes": company.likes, "views": company.views},
        "hasAffiliateProgram": company.promotion_settings.has_affiliate_program,
        "teamSize": len(company.team_members),
        "url": company.url,
    }


def directory_stats(companies: List[Company]) -> Dict[str, Any]:
    total = len(companies)
    categories = distinct_sorted(c.category for c in companies)
    total_likes = sum(c.likes or 0 for c in companies)
    total_views = sum(c.views or 0 for c in companies)
    return {
        "total_companies": total,
        "verified_companies": sum(1 for c in companies if c.verification_status == "verified"),
        "promoted_companies": sum(1 for c in companies if c.is_promoted),
        "companies_with_affiliate_programs": sum(
            1 for c in companies if c.promotion_settings.has_affiliate_program
        ),
        "total_categories": len(categories),
        "categories": categories,
        "total_likes": total_likes,
        "total_views": total_views,
        "average_likes_per_company": average(total_likes, total),
        "average_views_per_company": average(total_views, total),
    }


# ============================================================================
# Events
# ============================================================================

def event_summary(event: Event) -> Dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "company": event.company,
        "category": event.category,
        "location": format_location(event.city, event.country),
        "eventStartDate": event.event_start_date,
        "eventEndDate": event.event_end_date,
        "website": event.website,
        "featuredImage": event.featured_image,
    }


def event_details(event: Event) -> Dict[str, Any]:
    return {
        "basic_info": {
            "id": event.id,
            "title": event.title,
            "company": event.company,
            "category": event.category,
            "description": event.description,
        },
        "location": {
            "venue": event.location,
            "city": event.city,
            "country": event.country,
        },
        "dates": {
            "start": event.event_start_date,
            "end": event.event_end_date,
        },
        "links": {
            "website": event.website,
            "featuredImage": event.featured_image,
        },
        "social_links": event.social_links.to_document(),
        "metadata": {
            "createdAt": event.created_at,
            "updatedAt": event.updated_at,
        },
    }


def event_comparison_entry(event: Event) -> Dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "organizer": event.company,
        "category": event.category,
        "location": format_location(event.city, event.country),
        "venue": event.location,
        "dates": {"start": event.event_start_date, "end": event.event_end_date},
        "website": event.website,
        "socialLinks": event.social_links.to_document(),
    }


def event_status(event: Event, now: datetime) -> str:
    start, end = event.start_time, event.end_time
    if start is not None and start > now:
        return "Upcoming"
    if start is not None and end is not None and start <= now <= end:
        return "Ongoing"
    return "Past"


def events_stats(events: List[Event], now: datetime) -> Dict[str, Any]:
    upcoming = sum(1 for event in events if event.is_upcoming(now))
    categories = distinct_sorted(e.category for e in events)
    countries = distinct_sorted(e.country for e in events)
    cities = distinct_sorted(e.city for e in events)
    companies = distinct_sorted(e.company for e in events)
    return {
        "total_events": len(events),
        "upcoming_events": upcoming,
        "past_events": len(events) - upcoming,
        "total_categories": len(categories),
        "categories": categories,
        "total_countries": len(countries),
        "countries": countries,
        "total_cities": len(cities),
        "cities": cities,
        "total_companies": len(companies),
        "companies": companies,
    }


# ============================================================================
# Podcasts
# ============================================================================

def podcast_summary(podcast: Podcast) -> Dict[str, Any]:
    return {
        "id": podcast.id,
        "title": podcast.title,
        "company": podcast.company,
        "category": podcast.category,
        "status": podcast.status,
        "host": podcast.host,
        "url": podcast.url,
        "likes": podcast.likes,
        "views": podcast.views,
    }


def podcast_details(podcast: Podcast) -> Dict[str, Any]:
    return {
        "basic_info": {
            "id": podcast.id,
            "title": podcast.title,
            "company": podcast.company,
            "category": podcast.category,
            "status": podcast.status,
            "description": podcast.description,
        },
        "host": podcast.host,
        "links": {
            "url": podcast.url,
            "image": podcast.image,
        },
        "stats": {
            "likes": podcast.likes,
            "views": podcast.views,
        },
        "metadata": {
            "createdAt": podcast.created_at,
            "updatedAt": podcast.updated_at,
        },
    }


def podcast_stats(podcasts: List[Podcast]) -> Dict[str, Any]:
    total = len(podcasts)
    categories = distinct_sorted(p.category for p in podcasts)
    companies = distinct_sorted(p.company for p in podcasts)
    statuses = Counter(p.status for p in podcasts if p.status)
    total_likes = sum(p.likes or 0 for p in podcasts)
    total_views = sum(p.views or 0 for p in podcasts)
    return {
        "total_podcasts": total,
        "total_categories": len(categories),
        "categories": categories,
        "total_companies": len(companies),
        "companies": companies,
        "status_counts": dict(sorted(statuses.items())),
        "total_likes": total_likes,
        "total_views": total_views,
        "average_likes_per_podcast": average(total_likes, total),
        "average_views_per_podcast": average(total_views, total),
    }
