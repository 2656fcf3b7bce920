"""
Blockza Directory API Client

Sole owner of network access to the upstream directory. Exposes typed
lookups for the three collections:
- companies: https://api.blockza.io/api/directory  ({success, data} envelope)
- events:    https://api.blockza.io/api/events     (bare array)
- podcasts:  https://api.blockza.io/api/podcasts   (bare array)

Every operation is a single GET. The blocking request runs in the default
executor so callers can await it.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from .entities import (
    Company,
    Event,
    Podcast,
    RecordT,
    parse_company_envelope,
    parse_record_list,
)
from .errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.blockza.io/api"
DEFAULT_TIMEOUT = 30


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _query_params(**filters: Any) -> Dict[str, str]:
    """Build query params, dropping absent filters and lower-casing booleans."""
    params: Dict[str, str] = {}
    for key, value in filters.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        elif key == "limit":
            if value:
                params[key] = str(int(value))
        elif value != "":
            params[key] = str(value)
    return params


def _in_category(records: List[RecordT], category: Optional[str]) -> List[RecordT]:
    """Keep records whose category equals the requested one (case-insensitive)."""
    # The directory API may ignore the category parameter or match it as a
    # prefix ("Web3" also returns "Web3 Gaming"); callers asked for the exact category.
    if not category:
        return records
    wanted = category.casefold()
    return [record for record in records if (record.category or "").casefold() == wanted]


class BlockzaAPIClient:
    """Read-only client for the Blockza directory API."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT):
        base = base_url.rstrip("/")
        self.companies_url = f"{base}/directory"
        self.events_url = f"{base}/events"
        self.podcasts_url = f"{base}/podcasts"
        self.timeout = timeout

    # ------------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------------

    async def _fetch(self, url: str, params: Dict[str, str]) -> Any:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._fetch_sync, url, params)

    def _fetch_sync(self, url: str, params: Dict[str, str]) -> Any:
        """
        Synchronous GET (runs in executor).

        Raises:
            UpstreamError: On connection failure, non-2xx status or a body that is not JSON
        """
        logger.info(f"GET {url} params={params}")
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"API request failed: {e}")
            raise UpstreamError(f"Request to {url} failed: {e}") from e

        if not response.ok:
            logger.error(f"API request failed: HTTP {response.status_code} {response.reason}")
            raise UpstreamError.from_status(response.status_code, response.reason)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Malformed JSON from {url}") from e

    # ------------------------------------------------------------------------
    # Companies
    # ------------------------------------------------------------------------

    async def get_companies(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        verified: Optional[bool] = None,
    ) -> List[Company]:
        params = _query_params(limit=limit, category=category, search=search, verified=verified)
        payload = await self._fetch(self.companies_url, params)
        return _in_category(parse_company_envelope(payload), category)

    async def get_company_by_slug(self, slug: str) -> Optional[Company]:
        """
        Resolve a company by slug.

        The upstream API has no exact-lookup endpoint, so this runs a loose
        search and prefers the record whose slug matches exactly. If none
        does, the first search hit is returned; for ambiguous terms that
        may not be the company the caller meant.

        Returns:
            The matching company, or None if the search returned nothing

        Raises:
            UpstreamError: If the search request fails
        """
        companies = await self.get_companies(search=slug)
        if not companies:
            return None
        for company in companies:
            if company.slug == slug:
                return company
        logger.warning(f"No exact slug match for '{slug}', falling back to '{companies[0].slug}'")
        return companies[0]

    async def get_companies_by_category(self, category: str) -> List[Company]:
        try:
            return await self.get_companies(category=category)
        except UpstreamError as e:
            logger.warning(f"Failed to get companies by category '{category}': {e}")
            return []

    # ------------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------------

    async def get_events(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        country: Optional[str] = None,
        city: Optional[str] = None,
        limit: Optional[int] = None,
        upcoming: Optional[bool] = None,
    ) -> List[Event]:
        params = _query_params(
            limit=limit, category=category, search=search,
            country=country, city=city, upcoming=upcoming,
        )
        payload = await self._fetch(self.events_url, params)
        return _in_category(parse_record_list(payload, Event, "events"), category)

    async def get_event_by_id(self, event_id: str) -> Optional[Event]:
        events = await self.get_events()
        return next((event for event in events if event.id == event_id), None)

    async def get_events_by_category(self, category: str) -> List[Event]:
        try:
            return await self.get_events(category=category)
        except UpstreamError as e:
            logger.warning(f"Failed to get events by category '{category}': {e}")
            return []

    async def get_upcoming_events(self, now: Optional[datetime] = None) -> List[Event]:
        """Events whose start time is strictly after ``now`` (evaluated per call)."""
        try:
            events = await self.get_events()
        except UpstreamError as e:
            logger.warning(f"Failed to get upcoming events: {e}")
            return []
        now = now or utcnow()
        return [event for event in events if event.is_upcoming(now)]

    async def get_events_by_location(
        self, country: Optional[str] = None, city: Optional[str] = None
    ) -> List[Event]:
        if not country and not city:
            raise ValidationError("Please provide either a country or city parameter")
        try:
            return await self.get_events(country=country, city=city)
        except UpstreamError as e:
            logger.warning(f"Failed to get events by location ({country}, {city}): {e}")
            return []

    # ------------------------------------------------------------------------
    # Podcasts
    # ------------------------------------------------------------------------

    async def get_podcasts(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        company: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Podcast]:
        params = _query_params(
            limit=limit, category=category, search=search,
            company=company, status=status,
        )
        payload = await self._fetch(self.podcasts_url, params)
        return _in_category(parse_record_list(payload, Podcast, "podcasts"), category)

    async def get_podcast_by_id(self, podcast_id: str) -> Optional[Podcast]:
        podcasts = await self.get_podcasts()
        return next((podcast for podcast in podcasts if podcast.id == podcast_id), None)

    async def get_podcasts_by_category(self, category: str) -> List[Podcast]:
        try:
            return await self.get_podcasts(category=category)
        except UpstreamError as e:
            logger.warning(f"Failed to get podcasts by category '{category}': {e}")
            return []


# Shared stateless client used by all handlers
api_client = BlockzaAPIClient()
