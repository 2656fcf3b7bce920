"""
MCP Prompt Endpoint Handlers

Handles prompt listing and retrieval for MCP protocol.
Exposes analysis, comparison and recommendation prompts that are filled
with live directory data. Prompts always resolve to a message: missing
arguments, unknown records and empty result sets produce guidance text
instead of an error.
"""

import logging
import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..client import api_client, utcnow
from ..entities import Company, Event, Podcast, parse_timestamp
from ..errors import DirectoryError, EmptyResultError
from ..models import (
    PromptDefinition,
    PromptArgument,
    PromptListResponse,
    PromptGetRequest,
    PromptGetResponse,
)
from ..shaping import (
    company_comparison_entry,
    event_comparison_entry,
    event_status,
    format_location,
    sort_by_start,
    to_json,
)

logger = logging.getLogger(__name__)

DEFAULT_COMPARISON_SIZE = 5
MAX_RECOMMENDATIONS = 10
DESCRIPTION_PREVIEW = 200


def _get_template_dir() -> Path:
    """Get the bundled prompt template directory."""
    return Path(__file__).resolve().parents[1] / "prompts"


def render_template(name: str, values: Dict[str, Any]) -> str:
    """Load ``prompts/<name>.md`` and substitute ``{field}`` placeholders in a single pass."""
    template = (_get_template_dir() / f"{name}.md").read_text()
    return re.sub(
        r"\{(\w+)\}",
        lambda match: _display(values[match.group(1)]) if match.group(1) in values else match.group(0),
        template,
    ).rstrip("\n")


def _display(value: Any) -> str:
    if value is None or value == "":
        return "N/A"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def _display_date(value: Optional[str]) -> str:
    parsed = parse_timestamp(value)
    return parsed.strftime("%B %d, %Y") if parsed else _display(value)


def _parse_count(value: Optional[str], default: int = DEFAULT_COMPARISON_SIZE) -> int:
    try:
        count = int(value) if value else default
    except ValueError:
        logger.info(f"Ignoring non-numeric limit '{value}', using {default}")
        return default
    return count if count > 0 else default


def _matches_location(event: Event, location: str) -> bool:
    needle = location.lower()
    return needle in (event.country or "").lower() or needle in (event.city or "").lower()


# ============================================================================
# Company prompts
# ============================================================================

def _company_values(company: Company) -> Dict[str, Any]:
    social = company.social_links
    promotion = company.promotion_settings
    roster = "\n".join(
        f"- {_display(member.name)}, {_display(member.title)}" for member in company.team_members
    )
    return {
        "name": company.name,
        "slug": company.slug,
        "category": company.category,
        "verification_status": company.verification_status,
        "short_description": company.short_description,
        "detail": company.detail,
        "logo": company.logo,
        "banner": company.banner,
        "url": company.url,
        "founder_name": company.founder_name,
        "founder_details": company.founder_details,
        "founder_email": company.founder_email,
        "founder_image": company.founder_image,
        "founder_followers": company.founder_followers,
        "founder_response_rate": company.founder_response_rate,
        "twitter": social.twitter,
        "linkedin": social.linkedin,
        "telegram": social.telegram,
        "facebook": social.facebook,
        "youtube": social.youtube,
        "has_affiliate_program": promotion.has_affiliate_program,
        "interested_in_business_partnership": promotion.interested_in_business_partnership,
        "is_promoted": company.is_promoted,
        "follower_price": company.follower_price,
        "likes": company.likes or 0,
        "views": company.views or 0,
        "team_size": len(company.team_members),
        "team_roster": roster,
    }


async def _analyze_company(args: Dict[str, str]) -> str:
    slug = args.get("company_slug")
    if not slug:
        return "Please provide a company slug to analyze."

    company = await api_client.get_company_by_slug(slug)
    if company is None:
        return f'Please provide an analysis template for when a company "{slug}" is not found in the directory.'

    return render_template("analyze_company", _company_values(company))


async def _compare_companies(args: Dict[str, str]) -> str:
    category = args.get("category")
    if not category:
        return "Please provide a category to compare companies within."

    companies = await api_client.get_companies_by_category(category)
    ranked = sorted(companies, key=lambda company: company.engagement, reverse=True)
    top = ranked[:_parse_count(args.get("limit"))]

    if not top:
        raise EmptyResultError(
            f'No companies found in category "{category}". Please suggest how to find companies '
            f"in this category or recommend similar categories."
        )

    return render_template("compare_companies", {
        "count": len(top),
        "category": category,
        "companies": to_json([company_comparison_entry(company) for company in top]),
    })


# ============================================================================
# Event prompts
# ============================================================================

def _event_values(event: Event, now: datetime) -> Dict[str, Any]:
    social = event.social_links
    return {
        "id": event.id,
        "title": event.title,
        "company": event.company,
        "category": event.category,
        "status": event_status(event, now),
        "description": event.description,
        "venue": event.location,
        "city": event.city,
        "country": event.country,
        "start": _display_date(event.event_start_date),
        "end": _display_date(event.event_end_date),
        "website": event.website,
        "featured_image": event.featured_image,
        "twitter": social.twitter,
        "linkedin": social.linkedin,
        "telegram": social.telegram,
        "instagram": social.instagram,
        "created_at": event.created_at,
        "updated_at": event.updated_at,
    }


async def _analyze_event(args: Dict[str, str]) -> str:
    event_id = args.get("event_id")
    if not event_id:
        return "Please provide an event ID to analyze."

    event = await api_client.get_event_by_id(event_id)
    if event is None:
        return f'Please provide an analysis template for when an event "{event_id}" is not found in the directory.'

    return render_template("analyze_event", _event_values(event, utcnow()))


async def _compare_events(args: Dict[str, str]) -> str:
    category, location = args.get("category"), args.get("location")
    if not category and not location:
        return "Please provide either a category or location to compare events within."

    if category:
        events = await api_client.get_events_by_category(category)
    else:
        events = [event for event in await api_client.get_events() if _matches_location(event, location)]

    top = sort_by_start(events)[:_parse_count(args.get("limit"))]
    filter_value = category or location

    if not top:
        raise EmptyResultError(
            f'No events found for "{filter_value}". Please suggest how to find events in this '
            f"category/location or recommend similar options."
        )

    return render_template("compare_events", {
        "count": len(top),
        "filter": filter_value,
        "events": to_json([event_comparison_entry(event) for event in top]),
    })


def _within_timeframe(events: List[Event], timeframe: str, now: datetime) -> List[Event]:
    """
    Filter by a free-text timeframe.

    Understands "next N months" (window starting now) and a four-digit
    year (start date falls in that year); anything else leaves the list as is.
    """
    text = timeframe.lower()
    months = re.search(r"next\s+(\d+)\s+months?", text)
    if months:
        horizon = now + timedelta(days=30 * int(months.group(1)))
        return [e for e in events if e.start_time is not None and now <= e.start_time <= horizon]

    year = re.search(r"\b(\d{4})\b", text)
    if year:
        wanted = int(year.group(1))
        return [e for e in events if e.start_time is not None and e.start_time.year == wanted]

    logger.info(f"Unrecognised timeframe '{timeframe}', not filtering by date")
    return events


def _recommendation_entry(event: Event) -> Dict[str, Any]:
    description = event.description or ""
    if len(description) > DESCRIPTION_PREVIEW:
        description = description[:DESCRIPTION_PREVIEW] + "..."
    return {
        "id": event.id,
        "title": event.title,
        "organizer": event.company,
        "category": event.category,
        "location": format_location(event.city, event.country),
        "dates": event.event_start_date,
        "website": event.website,
        "description": description,
    }


async def _event_recommendations(args: Dict[str, str]) -> str:
    interests = args.get("interests")
    location = args.get("location")
    timeframe = args.get("timeframe")
    event_type = args.get("event_type")

    events = await api_client.get_events()

    if interests:
        terms = [term.strip() for term in interests.lower().split(",") if term.strip()]
        events = [
            event for event in events
            if any(
                term in event.title.lower()
                or term in (event.description or "").lower()
                or term in (event.category or "").lower()
                for term in terms
            )
        ]

    if location:
        events = [event for event in events if _matches_location(event, location)]

    if event_type:
        wanted = event_type.lower()
        events = [event for event in events if wanted in (event.category or "").lower()]

    if timeframe:
        events = _within_timeframe(events, timeframe, utcnow())

    recommendations = sort_by_start(events)[:MAX_RECOMMENDATIONS]

    criteria = []
    if interests:
        criteria.append(f"Interests: {interests}")
    if location:
        criteria.append(f"Location: {location}")
    if timeframe:
        criteria.append(f"Timeframe: {timeframe}")
    if event_type:
        criteria.append(f"Event Type: {event_type}")
    criteria_text = ", ".join(criteria) or "no specific criteria"

    if not recommendations:
        raise EmptyResultError(
            f"No events matched your criteria ({criteria_text}). Please suggest broader criteria "
            f"or alternative ways to discover relevant events."
        )

    return render_template("event_recommendations", {
        "criteria": criteria_text,
        "count": len(recommendations),
        "events": to_json([_recommendation_entry(event) for event in recommendations]),
    })


# ============================================================================
# Podcast prompts
# ============================================================================

def _podcast_values(podcast: Podcast) -> Dict[str, Any]:
    return {
        "id": podcast.id,
        "title": podcast.title,
        "company": podcast.company,
        "host": podcast.host,
        "category": podcast.category,
        "status": podcast.status,
        "description": podcast.description,
        "url": podcast.url,
        "image": podcast.image,
        "likes": podcast.likes or 0,
        "views": podcast.views or 0,
        "created_at": podcast.created_at,
        "updated_at": podcast.updated_at,
    }


async def _analyze_podcast(args: Dict[str, str]) -> str:
    podcast_id = args.get("podcast_id")
    if not podcast_id:
        return "Please provide a podcast ID to analyze."

    podcast = await api_client.get_podcast_by_id(podcast_id)
    if podcast is None:
        return f'Please provide an analysis template for when a podcast "{podcast_id}" is not found in the directory.'

    return render_template("analyze_podcast", _podcast_values(podcast))


# Prompt registry
PROMPT_REGISTRY: Dict[str, Dict[str, Any]] = {
    "analyze_company": {
        "title": "Analyze Company",
        "description": "Generate a comprehensive analysis of a company in the directory",
        "arguments": [
            {"name": "company_slug", "description": "The slug of the company to analyze"},
        ],
        "handler": _analyze_company,
    },
    "compare_companies": {
        "title": "Compare Companies",
        "description": "Generate a comparison between companies in the same category",
        "arguments": [
            {"name": "category", "description": "Category to compare companies within"},
            {"name": "limit", "description": "Number of companies to include in comparison (default: 5)", "required": False},
        ],
        "handler": _compare_companies,
    },
    "analyze_event": {
        "title": "Analyze Event",
        "description": "Generate a comprehensive analysis of an event in the directory",
        "arguments": [
            {"name": "event_id", "description": "The ID of the event to analyze"},
        ],
        "handler": _analyze_event,
    },
    "compare_events": {
        "title": "Compare Events",
        "description": "Generate a comparison between events in the same category or location",
        "arguments": [
            {"name": "category", "description": "Category to compare events within", "required": False},
            {"name": "location", "description": "Location to compare events within (country or city)", "required": False},
            {"name": "limit", "description": "Number of events to include in comparison (default: 5)", "required": False},
        ],
        "handler": _compare_events,
    },
    "event_recommendations": {
        "title": "Event Recommendations",
        "description": "Generate personalized event recommendations based on criteria",
        "arguments": [
            {"name": "interests", "description": "Areas of interest (e.g., 'DeFi', 'NFTs', 'AI')", "required": False},
            {"name": "location", "description": "Preferred location (country or city)", "required": False},
            {"name": "timeframe", "description": "Preferred timeframe (e.g., 'next 3 months', '2026')", "required": False},
            {"name": "event_type", "description": "Type of event (e.g., 'Conference', 'Meetup', 'Hackathon')", "required": False},
        ],
        "handler": _event_recommendations,
    },
    "analyze_podcast": {
        "title": "Analyze Podcast",
        "description": "Generate a comprehensive analysis of a podcast in the directory",
        "arguments": [
            {"name": "podcast_id", "description": "The ID of the podcast to analyze"},
        ],
        "handler": _analyze_podcast,
    },
}


async def list_prompts() -> PromptListResponse:
    """
    List all available prompts.

    Returns:
        PromptListResponse with list of prompt definitions
    """
    prompts = []

    for prompt_id, metadata in PROMPT_REGISTRY.items():
        arguments = [
            PromptArgument(
                name=arg["name"],
                description=arg.get("description"),
                required=arg.get("required", True)
            )
            for arg in metadata.get("arguments", [])
        ]

        prompts.append(PromptDefinition(
            name=prompt_id,
            title=metadata.get("title"),
            description=metadata.get("description"),
            arguments=arguments
        ))

    return PromptListResponse(prompts=prompts)


def _user_message(text: str) -> List[Dict[str, Any]]:
    return [{"role": "user", "content": {"type": "text", "text": text}}]


async def get_prompt(request: PromptGetRequest) -> PromptGetResponse:
    """
    Get a prompt filled with directory data.

    Args:
        request: Prompt get request with name and optional arguments

    Returns:
        PromptGetResponse with prompt messages

    Raises:
        ValueError: If prompt name is not found
    """
    prompt_name = request.name

    if prompt_name not in PROMPT_REGISTRY:
        raise ValueError(f"Prompt '{prompt_name}' not found. Available prompts: {list(PROMPT_REGISTRY.keys())}")

    metadata = PROMPT_REGISTRY[prompt_name]
    handler: Callable[[Dict[str, str]], Awaitable[str]] = metadata["handler"]
    arguments = {key: value for key, value in (request.arguments or {}).items() if value}

    try:
        text = await handler(arguments)
        return PromptGetResponse(description=metadata["description"], messages=_user_message(text))

    except EmptyResultError as e:
        return PromptGetResponse(description=metadata["description"], messages=_user_message(str(e)))

    except DirectoryError as e:
        logger.error(f"Error getting prompt '{prompt_name}': {e}")
        text = (
            f"Error retrieving directory data for {prompt_name}: {e}. "
            f"Please provide guidance on how to proceed without live directory data."
        )
        return PromptGetResponse(description=metadata["description"], messages=_user_message(text))

    except Exception as e:
        logger.error(f"Error getting prompt '{prompt_name}': {e}", exc_info=True)
        return PromptGetResponse(
            description=metadata["description"],
            messages=_user_message(f"Error: {str(e)}"),
            isError=True
        )
