"""
MCP Tool Endpoint Handlers

Handles tool listing and execution for MCP protocol.
Exposes directory tools for companies, events and podcasts: search, detail
lookup, category/location browsing and aggregate statistics.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ..client import api_client, utcnow
from ..errors import DirectoryError, NotFoundError, UpstreamError, ValidationError
from ..models import (
    ToolDefinition,
    ToolListResponse,
    ToolCallRequest,
    ToolCallResponse,
)
from ..shaping import (
    company_details,
    company_summary,
    directory_stats,
    event_details,
    event_summary,
    events_stats,
    format_data_block,
    format_location,
    podcast_details,
    podcast_stats,
    podcast_summary,
    sort_by_start,
    team_member_summary,
    truncate,
)

logger = logging.getLogger(__name__)

_LIMIT_SCHEMA = {
    "type": "number",
    "description": "Maximum number of results to return",
    "minimum": 1,
}


# Tool registry with metadata
TOOL_REGISTRY: Dict[str, Dict[str, Any]] = {
    "search_companies": {
        "title": "Search Companies by Name",
        "description": (
            "Search companies in the Blockza directory by name or general search terms. "
            "For category-specific searches, use get_companies_by_category instead."
        ),
        "error_label": "searching companies",
        "inputSchema": {
            "type": "object",
            "properties": {
                "search": {
                    "type": "string",
                    "description": "Search term to find companies by name or description"
                },
                "category": {
                    "type": "string",
                    "description": "Filter by company category (e.g., 'Crypto Exchanges', 'AI')"
                },
                "limit": _LIMIT_SCHEMA,
                "verified_only": {
                    "type": "boolean",
                    "description": "Show only verified companies"
                }
            },
            "required": []
        }
    },
    "get_company_details": {
        "title": "Get Company Details",
        "description": "Get detailed information about a specific company by slug or name",
        "error_label": "getting company details",
        "inputSchema": {
            "type": "object",
            "properties": {
                "identifier": {
                    "type": "string",
                    "description": "Company slug or name to look up"
                },
                "include_team": {
                    "type": "boolean",
                    "description": "Include team member information"
                }
            },
            "required": ["identifier"]
        }
    },
    "get_companies_by_category": {
        "title": "Get Companies by Category",
        "description": (
            "PRIMARY TOOL for retrieving all companies in a specific category. Use this tool when "
            "users ask for companies by category (Web3, NFT, Blockchain, AI, etc.)."
        ),
        "error_label": "getting companies by category",
        "inputSchema": {
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "description": "Category to filter by (e.g., 'Web3', 'NFT', 'Blockchain', 'AI', 'DeFi')"
                },
                "limit": _LIMIT_SCHEMA
            },
            "required": ["category"]
        }
    },
    "get_team_members": {
        "title": "Get Team Members",
        "description": "Get team member information for a specific company",
        "error_label": "getting team members",
        "inputSchema": {
            "type": "object",
            "properties": {
                "company_slug": {
                    "type": "string",
                    "description": "Company slug to get team members for"
                }
            },
            "required": ["company_slug"]
        }
    },
    "get_directory_stats": {
        "title": "Get Directory Statistics",
        "description": "Get overall statistics about the Blockza directory",
        "error_label": "getting directory statistics",
        "inputSchema": {"type": "object", "properties": {}, "required": []}
    },
    "search_events": {
        "title": "Search Events",
        "description": "Search events in the Blockza events directory by title, category, location, or other criteria",
        "error_label": "searching events",
        "inputSchema": {
            "type": "object",
            "properties": {
                "search": {
                    "type": "string",
                    "description": "Search term to find events by title, description, or company"
                },
                "category": {
                    "type": "string",
                    "description": "Filter by event category (e.g., 'Conference', 'Meetup')"
                },
                "country": {"type": "string", "description": "Filter by country"},
                "city": {"type": "string", "description": "Filter by city"},
                "limit": _LIMIT_SCHEMA,
                "upcoming_only": {
                    "type": "boolean",
                    "description": "Show only upcoming events"
                }
            },
            "required": []
        }
    },
    "get_event_details": {
        "title": "Get Event Details",
        "description": "Get detailed information about a specific event by ID",
        "error_label": "getting event details",
        "inputSchema": {
            "type": "object",
            "properties": {
                "event_id": {"type": "string", "description": "Event ID to look up"}
            },
            "required": ["event_id"]
        }
    },
    "get_events_by_category": {
        "title": "Get Events by Category",
        "description": "Retrieve all events in a specific category",
        "error_label": "getting events by category",
        "inputSchema": {
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "description": "Category to filter by (e.g., 'Conference', 'Meetup')"
                },
                "limit": _LIMIT_SCHEMA
            },
            "required": ["category"]
        }
    },
    "get_upcoming_events": {
        "title": "Get Upcoming Events",
        "description": "Get all upcoming events sorted by date",
        "error_label": "getting upcoming events",
        "inputSchema": {
            "type": "object",
            "properties": {"limit": _LIMIT_SCHEMA},
            "required": []
        }
    },
    "get_events_by_location": {
        "title": "Get Events by Location",
        "description": "Retrieve events in a specific country or city",
        "error_label": "getting events by location",
        "inputSchema": {
            "type": "object",
            "properties": {
                "country": {"type": "string", "description": "Country to filter by"},
                "city": {"type": "string", "description": "City to filter by"},
                "limit": _LIMIT_SCHEMA
            },
            "required": []
        }
    },
    "get_events_stats": {
        "title": "Get Events Statistics",
        "description": "Get overall statistics about the Blockza events directory",
        "error_label": "getting events statistics",
        "inputSchema": {"type": "object", "properties": {}, "required": []}
    },
    "search_podcasts": {
        "title": "Search Podcasts",
        "description": "Search podcasts in the Blockza directory by title, category, company or status",
        "error_label": "searching podcasts",
        "inputSchema": {
            "type": "object",
            "properties": {
                "search": {"type": "string", "description": "Search term to find podcasts by title or description"},
                "category": {"type": "string", "description": "Filter by podcast category"},
                "company": {"type": "string", "description": "Filter by associated company"},
                "status": {"type": "string", "description": "Filter by podcast status (e.g., 'published')"},
                "limit": _LIMIT_SCHEMA
            },
            "required": []
        }
    },
    "get_podcast_details": {
        "title": "Get Podcast Details",
        "description": "Get detailed information about a specific podcast by ID",
        "error_label": "getting podcast details",
        "inputSchema": {
            "type": "object",
            "properties": {
                "podcast_id": {"type": "string", "description": "Podcast ID to look up"}
            },
            "required": ["podcast_id"]
        }
    },
    "get_podcasts_by_category": {
        "title": "Get Podcasts by Category",
        "description": "Retrieve all podcasts in a specific category",
        "error_label": "getting podcasts by category",
        "inputSchema": {
            "type": "object",
            "properties": {
                "category": {"type": "string", "description": "Category to filter by"},
                "limit": _LIMIT_SCHEMA
            },
            "required": ["category"]
        }
    },
    "get_podcast_stats": {
        "title": "Get Podcast Statistics",
        "description": "Get overall statistics about podcasts in the Blockza directory",
        "error_label": "getting podcast statistics",
        "inputSchema": {"type": "object", "properties": {}, "required": []}
    },
}


# ============================================================================
# Argument validation
# ============================================================================

def _matches_type(value: Any, expected: str) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    return True


def validate_arguments(schema: Dict[str, Any], arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Check arguments against a tool's input schema.

    Absent and null optional arguments are dropped rather than forwarded.

    Returns:
        The declared arguments that were supplied

    Raises:
        ValidationError: If a required argument is missing or any argument has the wrong type
    """
    arguments = arguments or {}
    properties = schema.get("properties", {})
    required = schema.get("required", [])

    for name in required:
        value = arguments.get(name)
        if value is None or value == "":
            raise ValidationError(f"Missing required argument: {name}")

    cleaned: Dict[str, Any] = {}
    for name, prop in properties.items():
        value = arguments.get(name)
        if value is None:
            continue
        expected = prop.get("type")
        if not _matches_type(value, expected):
            raise ValidationError(f"Invalid argument '{name}': expected {expected}")
        minimum = prop.get("minimum")
        if minimum is not None and value < minimum:
            raise ValidationError(f"Invalid argument '{name}': must be at least {minimum}")
        cleaned[name] = value
    return cleaned


def _describe_filters(**filters: Any) -> str:
    applied = [f"{key}: {value}" for key, value in filters.items() if value not in (None, "")]
    return f" ({', '.join(applied)})" if applied else ""


def _limit(args: Dict[str, Any]) -> Optional[int]:
    limit = args.get("limit")
    return int(limit) if limit else None


# ============================================================================
# Company tools
# ============================================================================

async def _search_companies(args: Dict[str, Any]) -> str:
    params: Dict[str, Any] = {}
    for key in ("search", "category", "limit"):
        if key in args:
            params[key] = args[key]
    if "verified_only" in args:
        params["verified"] = args["verified_only"]

    companies = await api_client.get_companies(**params)
    results = [company_summary(company) for company in companies]
    filters = _describe_filters(
        search=args.get("search"), category=args.get("category"), verified_only=args.get("verified_only")
    )
    return format_data_block(
        "COMPANIES_DATA", results,
        f"Found {len(results)} companies matching your search criteria{filters}."
    )


async def _get_company_details(args: Dict[str, Any]) -> str:
    identifier = args["identifier"]
    company = await api_client.get_company_by_slug(identifier)
    if company is None:
        raise NotFoundError("Company", identifier)

    details = company_details(company, include_team=args.get("include_team", False))
    return format_data_block("COMPANY_DATA", details, f"Retrieved details for {company.name}.")


async def _get_companies_by_category(args: Dict[str, Any]) -> str:
    category = args["category"]
    companies = truncate(await api_client.get_companies_by_category(category), _limit(args))
    summary = [company_summary(company) for company in companies]
    return format_data_block(
        "COMPANIES_DATA", summary,
        f'Found {len(summary)} companies in category "{category}".'
    )


async def _get_team_members(args: Dict[str, Any]) -> str:
    slug = args["company_slug"]
    company = await api_client.get_company_by_slug(slug)
    if company is None:
        raise NotFoundError("Company", slug)

    if not company.team_members:
        return f"No team members found for {company.name}"

    team_info = {
        "company": company.name,
        "team_members": [team_member_summary(member) for member in company.team_members],
    }
    return format_data_block(
        "TEAM_DATA", team_info,
        f"Found {len(team_info['team_members'])} team members for {company.name}."
    )


async def _get_directory_stats(args: Dict[str, Any]) -> str:
    try:
        companies = await api_client.get_companies()
    except UpstreamError as e:
        logger.warning(f"Directory stats degraded to empty listing: {e}")
        companies = []

    stats = directory_stats(companies)
    return format_data_block(
        "DIRECTORY_STATS", stats,
        f"Directory contains {stats['total_companies']} companies across {stats['total_categories']} categories."
    )


# ============================================================================
# Event tools
# ============================================================================

async def _search_events(args: Dict[str, Any]) -> str:
    params: Dict[str, Any] = {}
    for key in ("search", "category", "country", "city", "limit"):
        if key in args:
            params[key] = args[key]
    if "upcoming_only" in args:
        params["upcoming"] = args["upcoming_only"]

    events = await api_client.get_events(**params)
    if args.get("upcoming_only"):
        now = utcnow()
        events = [event for event in events if event.is_upcoming(now)]

    results = [event_summary(event) for event in events]
    filters = _describe_filters(
        search=args.get("search"), category=args.get("category"),
        country=args.get("country"), city=args.get("city"),
        upcoming_only=args.get("upcoming_only"),
    )
    return format_data_block(
        "EVENTS_DATA", results,
        f"Found {len(results)} events matching your search criteria{filters}."
    )


async def _get_event_details(args: Dict[str, Any]) -> str:
    event_id = args["event_id"]
    event = await api_client.get_event_by_id(event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    return format_data_block("EVENT_DATA", event_details(event), f"Retrieved details for {event.title}.")


async def _get_events_by_category(args: Dict[str, Any]) -> str:
    category = args["category"]
    events = truncate(await api_client.get_events_by_category(category), _limit(args))
    summary = [event_summary(event) for event in events]
    return format_data_block(
        "EVENTS_DATA", summary,
        f'Found {len(summary)} events in category "{category}".'
    )


async def _get_upcoming_events(args: Dict[str, Any]) -> str:
    events = sort_by_start(await api_client.get_upcoming_events())
    events = truncate(events, _limit(args))
    summary = [event_summary(event) for event in events]
    return format_data_block("EVENTS_DATA", summary, f"Found {len(summary)} upcoming events.")


async def _get_events_by_location(args: Dict[str, Any]) -> str:
    country, city = args.get("country"), args.get("city")
    if not country and not city:
        raise ValidationError("Please provide either a country or city parameter")

    events = truncate(await api_client.get_events_by_location(country=country, city=city), _limit(args))
    summary = [event_summary(event) for event in events]
    return format_data_block(
        "EVENTS_DATA", summary,
        f"Found {len(summary)} events in {format_location(city, country)}."
    )


async def _get_events_stats(args: Dict[str, Any]) -> str:
    try:
        events = await api_client.get_events()
    except UpstreamError as e:
        logger.warning(f"Events stats degraded to empty listing: {e}")
        events = []

    stats = events_stats(events, utcnow())
    return format_data_block(
        "EVENTS_STATS", stats,
        f"Events directory contains {stats['total_events']} events, {stats['upcoming_events']} upcoming."
    )


# ============================================================================
# Podcast tools
# ============================================================================

async def _search_podcasts(args: Dict[str, Any]) -> str:
    params = {key: args[key] for key in ("search", "category", "company", "status", "limit") if key in args}
    podcasts = await api_client.get_podcasts(**params)
    results = [podcast_summary(podcast) for podcast in podcasts]
    filters = _describe_filters(
        search=args.get("search"), category=args.get("category"),
        company=args.get("company"), status=args.get("status"),
    )
    return format_data_block(
        "PODCASTS_DATA", results,
        f"Found {len(results)} podcasts matching your search criteria{filters}."
    )


async def _get_podcast_details(args: Dict[str, Any]) -> str:
    podcast_id = args["podcast_id"]
    podcast = await api_client.get_podcast_by_id(podcast_id)
    if podcast is None:
        raise NotFoundError("Podcast", podcast_id)
    return format_data_block("PODCAST_DATA", podcast_details(podcast), f"Retrieved details for {podcast.title}.")


async def _get_podcasts_by_category(args: Dict[str, Any]) -> str:
    category = args["category"]
    podcasts = truncate(await api_client.get_podcasts_by_category(category), _limit(args))
    summary = [podcast_summary(podcast) for podcast in podcasts]
    return format_data_block(
        "PODCASTS_DATA", summary,
        f'Found {len(summary)} podcasts in category "{category}".'
    )


async def _get_podcast_stats(args: Dict[str, Any]) -> str:
    try:
        podcasts = await api_client.get_podcasts()
    except UpstreamError as e:
        logger.warning(f"Podcast stats degraded to empty listing: {e}")
        podcasts = []

    stats = podcast_stats(podcasts)
    return format_data_block(
        "PODCASTS_STATS", stats,
        f"Directory contains {stats['total_podcasts']} podcasts across {stats['total_categories']} categories."
    )


_TOOL_HANDLERS: Dict[str, Callable[[Dict[str, Any]], Awaitable[str]]] = {
    "search_companies": _search_companies,
    "get_company_details": _get_company_details,
    "get_companies_by_category": _get_companies_by_category,
    "get_team_members": _get_team_members,
    "get_directory_stats": _get_directory_stats,
    "search_events": _search_events,
    "get_event_details": _get_event_details,
    "get_events_by_category": _get_events_by_category,
    "get_upcoming_events": _get_upcoming_events,
    "get_events_by_location": _get_events_by_location,
    "get_events_stats": _get_events_stats,
    "search_podcasts": _search_podcasts,
    "get_podcast_details": _get_podcast_details,
    "get_podcasts_by_category": _get_podcasts_by_category,
    "get_podcast_stats": _get_podcast_stats,
}


# ============================================================================
# Endpoint functions
# ============================================================================

async def list_tools() -> ToolListResponse:
    """
    List all available tools.

    Returns:
        ToolListResponse with list of tool definitions
    """
    tools = [
        ToolDefinition(
            name=name,
            title=metadata.get("title"),
            description=metadata["description"],
            inputSchema=metadata["inputSchema"]
        )
        for name, metadata in TOOL_REGISTRY.items()
    ]

    return ToolListResponse(tools=tools)


def _error_response(message: str) -> ToolCallResponse:
    return ToolCallResponse(content=[{"type": "text", "text": message}], isError=True)


async def call_tool(request: ToolCallRequest) -> ToolCallResponse:
    """
    Execute a tool call.

    Validation, not-found and upstream failures are all returned as
    ``isError`` responses; only an unknown tool name raises.

    Args:
        request: Tool call request with name and arguments

    Returns:
        ToolCallResponse with tool output

    Raises:
        ValueError: If tool name is not found
    """
    tool_name = request.name

    if tool_name not in TOOL_REGISTRY:
        raise ValueError(f"Tool '{tool_name}' not found. Available tools: {list(TOOL_REGISTRY.keys())}")

    metadata = TOOL_REGISTRY[tool_name]

    try:
        args = validate_arguments(metadata["inputSchema"], request.arguments)
        text = await _TOOL_HANDLERS[tool_name](args)
        return ToolCallResponse(content=[{"type": "text", "text": text}], isError=False)

    except (ValidationError, NotFoundError) as e:
        logger.info(f"Tool '{tool_name}' rejected: {e}")
        return _error_response(str(e))

    except DirectoryError as e:
        logger.error(f"Error executing tool '{tool_name}': {e}")
        return _error_response(f"Error {metadata['error_label']}: {e}")

    except Exception as e:
        logger.error(f"Error executing tool '{tool_name}': {e}", exc_info=True)
        return _error_response(f"Error {metadata['error_label']}: {e}")