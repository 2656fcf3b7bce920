"""
MCP Resource Endpoint Handlers

Handles resource listing and reading for MCP protocol.
Exposes resources under the blockza:// scheme: full listings, single
records by slug or id, upcoming events and category sets.
"""

import logging
import re
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from urllib.parse import unquote

from ..client import api_client
from ..errors import DirectoryError, NotFoundError, UpstreamError
from ..models import (
    ResourceDefinition,
    ResourceListResponse,
    ResourceTemplateDefinition,
    ResourceTemplateListResponse,
    ResourceReadRequest,
    ResourceReadResponse,
)
from ..shaping import distinct_sorted, sort_by_start, to_json

logger = logging.getLogger(__name__)

URI_SCHEME = "blockza://"
JSON_MIME = "application/json"


# ============================================================================
# Resource handlers
# ============================================================================

async def _all_companies(params: Dict[str, str]) -> Any:
    companies = await api_client.get_companies()
    return {"success": True, "data": [company.to_document() for company in companies]}


async def _company_profile(params: Dict[str, str]) -> Any:
    slug = params["slug"]
    company = await api_client.get_company_by_slug(slug)
    if company is None:
        raise NotFoundError("Company", slug)
    return company.to_document()


async def _company_categories(params: Dict[str, str]) -> Any:
    try:
        companies = await api_client.get_companies()
    except UpstreamError as e:
        logger.warning(f"Company categories degraded to empty set: {e}")
        companies = []
    return {"success": True, "categories": distinct_sorted(c.category for c in companies)}


async def _all_events(params: Dict[str, str]) -> Any:
    return [event.to_document() for event in await api_client.get_events()]


async def _event_details(params: Dict[str, str]) -> Any:
    event_id = params["id"]
    event = await api_client.get_event_by_id(event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    return event.to_document()


async def _upcoming_events(params: Dict[str, str]) -> Any:
    events = sort_by_start(await api_client.get_upcoming_events())
    return [event.to_document() for event in events]


async def _event_categories(params: Dict[str, str]) -> Any:
    try:
        events = await api_client.get_events()
    except UpstreamError as e:
        logger.warning(f"Event categories degraded to empty set: {e}")
        events = []
    return {"success": True, "categories": distinct_sorted(e.category for e in events)}


async def _all_podcasts(params: Dict[str, str]) -> Any:
    return [podcast.to_document() for podcast in await api_client.get_podcasts()]


async def _podcast_details(params: Dict[str, str]) -> Any:
    podcast_id = params["id"]
    podcast = await api_client.get_podcast_by_id(podcast_id)
    if podcast is None:
        raise NotFoundError("Podcast", podcast_id)
    return podcast.to_document()


async def _podcast_categories(params: Dict[str, str]) -> Any:
    try:
        podcasts = await api_client.get_podcasts()
    except UpstreamError as e:
        logger.warning(f"Podcast categories degraded to empty set: {e}")
        podcasts = []
    return {"success": True, "categories": distinct_sorted(p.category for p in podcasts)}


ResourceHandler = Callable[[Dict[str, str]], Awaitable[Any]]

# Resource registry: static resources carry "uri", parameterised ones "uriTemplate"
RESOURCE_REGISTRY: Dict[str, Dict[str, Any]] = {
    "companies": {
        "uri": "blockza://companies",
        "title": "All Companies",
        "description": "Complete directory of companies in the Blockza ecosystem",
        "error_label": "companies",
        "handler": _all_companies,
    },
    "company-profile": {
        "uriTemplate": "blockza://company/{slug}",
        "title": "Company Profile",
        "description": "Detailed profile information for a specific company",
        "error_label": "company",
        "handler": _company_profile,
    },
    "categories": {
        "uri": "blockza://categories",
        "title": "Company Categories",
        "description": "Available categories for filtering companies",
        "error_label": "categories",
        "handler": _company_categories,
    },
    "events": {
        "uri": "blockza://events",
        "title": "All Events",
        "description": "Complete directory of events in the Blockza ecosystem",
        "error_label": "events",
        "handler": _all_events,
    },
    "event-details": {
        "uriTemplate": "blockza://event/{id}",
        "title": "Event Details",
        "description": "Detailed information for a specific event",
        "error_label": "event",
        "handler": _event_details,
    },
    "upcoming-events": {
        "uri": "blockza://events/upcoming",
        "title": "Upcoming Events",
        "description": "All upcoming events in the Blockza ecosystem",
        "error_label": "upcoming events",
        "handler": _upcoming_events,
    },
    "event-categories": {
        "uri": "blockza://events/categories",
        "title": "Event Categories",
        "description": "Available categories for filtering events",
        "error_label": "event categories",
        "handler": _event_categories,
    },
    "podcasts": {
        "uri": "blockza://podcasts",
        "title": "All Podcasts",
        "description": "Complete directory of podcasts in the Blockza ecosystem",
        "error_label": "podcasts",
        "handler": _all_podcasts,
    },
    "podcast-details": {
        "uriTemplate": "blockza://podcast/{id}",
        "title": "Podcast Details",
        "description": "Detailed information for a specific podcast",
        "error_label": "podcast",
        "handler": _podcast_details,
    },
    "podcast-categories": {
        "uri": "blockza://podcasts/categories",
        "title": "Podcast Categories",
        "description": "Available categories for filtering podcasts",
        "error_label": "podcast categories",
        "handler": _podcast_categories,
    },
}


def _template_pattern(template: str) -> "re.Pattern[str]":
    """Compile ``blockza://company/{slug}`` into a regex with one named group per variable."""
    pattern = ""
    for literal, name in re.findall(r"([^{]*)(?:\{(\w+)\})?", template):
        pattern += re.escape(literal)
        if name:
            pattern += f"(?P<{name}>[^/?#]+)"
    return re.compile(f"^{pattern}$")


_TEMPLATE_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    resource_id: _template_pattern(metadata["uriTemplate"])
    for resource_id, metadata in RESOURCE_REGISTRY.items()
    if "uriTemplate" in metadata
}


def match_resource(uri: str) -> Optional[Tuple[str, Dict[str, str]]]:
    """
    Resolve a URI to a registered resource.

    Returns:
        (resource_id, params) or None if no resource matches
    """
    for resource_id, metadata in RESOURCE_REGISTRY.items():
        if metadata.get("uri") == uri:
            return resource_id, {}

    for resource_id, pattern in _TEMPLATE_PATTERNS.items():
        match = pattern.match(uri)
        if match:
            return resource_id, {key: unquote(value) for key, value in match.groupdict().items()}

    return None


# ============================================================================
# Endpoint functions
# ============================================================================

async def list_resources() -> ResourceListResponse:
    """
    List all static resources.

    Returns:
        ResourceListResponse with list of resource definitions
    """
    resources = [
        ResourceDefinition(
            uri=metadata["uri"],
            name=resource_id,
            title=metadata["title"],
            description=metadata["description"],
            mimeType=JSON_MIME
        )
        for resource_id, metadata in RESOURCE_REGISTRY.items()
        if "uri" in metadata
    ]

    return ResourceListResponse(resources=resources)


async def list_resource_templates() -> ResourceTemplateListResponse:
    """List parameterised resources as URI templates."""
    templates = [
        ResourceTemplateDefinition(
            uriTemplate=metadata["uriTemplate"],
            name=resource_id,
            title=metadata["title"],
            description=metadata["description"],
            mimeType=JSON_MIME
        )
        for resource_id, metadata in RESOURCE_REGISTRY.items()
        if "uriTemplate" in metadata
    ]

    return ResourceTemplateListResponse(resourceTemplates=templates)


def _document(uri: str, data: Any) -> Dict[str, Any]:
    return {"uri": uri, "mimeType": JSON_MIME, "text": to_json(data)}


async def read_resource(request: ResourceReadRequest) -> ResourceReadResponse:
    """
    Read a resource by URI.

    Failures while producing a known resource come back as an
    ``{"error": ...}`` document with ``isError`` set.

    Args:
        request: Resource read request with URI

    Returns:
        ResourceReadResponse with resource contents

    Raises:
        ValueError: If URI is invalid or matches no resource
    """
    uri = request.uri

    if not uri.startswith(URI_SCHEME):
        raise ValueError(f"Invalid resource URI format: {uri}")

    resolved = match_resource(uri)
    if resolved is None:
        raise ValueError(f"Resource '{uri}' not found")

    resource_id, params = resolved
    metadata = RESOURCE_REGISTRY[resource_id]

    try:
        data = await metadata["handler"](params)
        return ResourceReadResponse(contents=[_document(uri, data)], isError=False)

    except NotFoundError as e:
        return ResourceReadResponse(contents=[_document(uri, {"error": str(e)})], isError=True)

    except DirectoryError as e:
        logger.error(f"Error reading resource '{resource_id}': {e}")
        message = f"Failed to fetch {metadata['error_label']}: {e}"
        return ResourceReadResponse(contents=[_document(uri, {"error": message})], isError=True)

    except Exception as e:
        logger.error(f"Error reading resource '{resource_id}': {e}", exc_info=True)
        message = f"Failed to fetch {metadata['error_label']}: {e}"
        return ResourceReadResponse(contents=[_document(uri, {"error": message})], isError=True)
