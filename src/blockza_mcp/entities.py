"""
Pydantic models for Blockza directory records.

Upstream JSON uses camelCase keys and a Mongo-style ``_id``. Models expose
snake_case attributes, keep unknown upstream fields, and serialise back to
the upstream shape with ``to_document()``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import UpstreamError

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an upstream ISO-8601 timestamp into an aware UTC datetime, or None if unparseable."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class UpstreamRecord(BaseModel):
    """Base for all upstream records."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    @model_validator(mode="before")
    @classmethod
    def _null_means_absent(cls, data: Any) -> Any:
        """A null in a declared field falls back to that field's default."""
        if not isinstance(data, dict):
            return data
        declared = set(cls.model_fields)
        declared.update(field.alias for field in cls.model_fields.values() if field.alias)
        return {key: value for key, value in data.items() if value is not None or key not in declared}

    def to_document(self) -> Dict[str, Any]:
        """Dump back to the upstream JSON shape."""
        return self.model_dump(by_alias=True, mode="json")


# ============================================================================
# Companies
# ============================================================================

class SocialLinks(UpstreamRecord):
    facebook: Optional[str] = None
    linkedin: Optional[str] = None
    telegram: Optional[str] = None
    twitter: Optional[str] = None
    youtube: Optional[str] = None


class PromotionSettings(UpstreamRecord):
    has_affiliate_program: bool = False
    interested_in_business_partnership: bool = False


class TeamMember(UpstreamRecord):
    id: str = Field("", alias="_id")
    name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None
    linkedin_url: Optional[str] = None
    price: Optional[float] = None
    booking_methods: List[str] = Field(default_factory=list)
    status: Optional[str] = None
    followers: Optional[int] = 0
    response_rate: Optional[float] = None


class Company(UpstreamRecord):
    id: str = Field("", alias="_id")
    name: str = ""
    slug: str = ""
    short_description: Optional[str] = None
    detail: Optional[str] = None
    category: Optional[str] = None
    logo: Optional[str] = None
    banner: Optional[str] = None
    founder_name: Optional[str] = None
    founder_details: Optional[str] = None
    founder_email: Optional[str] = None
    founder_image: Optional[str] = None
    verification_status: Optional[str] = None
    url: Optional[str] = None
    is_promoted: bool = False
    likes: Optional[int] = 0
    views: Optional[int] = 0
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    promotion_settings: PromotionSettings = Field(default_factory=PromotionSettings)
    team_members: List[TeamMember] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    follower_price: Optional[float] = None
    founder_followers: Optional[int] = None
    founder_response_rate: Optional[float] = None

    @property
    def engagement(self) -> int:
        """Ranking score used by company comparisons."""
        return (self.views or 0) + (self.likes or 0)


# ============================================================================
# Events
# ============================================================================

class EventSocialLinks(UpstreamRecord):
    linkedin: Optional[str] = None
    telegram: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None


class Event(UpstreamRecord):
    id: str = Field("", alias="_id")
    title: str = ""
    company: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    event_start_date: Optional[str] = None
    event_end_date: Optional[str] = None
    category: Optional[str] = None
    website: Optional[str] = None
    featured_image: Optional[str] = None
    social_links: EventSocialLinks = Field(default_factory=EventSocialLinks)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def start_time(self) -> Optional[datetime]:
        return parse_timestamp(self.event_start_date)

    @property
    def end_time(self) -> Optional[datetime]:
        return parse_timestamp(self.event_end_date)

    def is_upcoming(self, now: datetime) -> bool:
        start = self.start_time
        return start is not None and start > now


# ============================================================================
# Podcasts
# ============================================================================

class Podcast(UpstreamRecord):
    id: str = Field("", alias="_id")
    title: str = ""
    description: Optional[str] = None
    company: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    host: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = None
    likes: Optional[int] = 0
    views: Optional[int] = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ============================================================================
# Envelope validation
# ============================================================================

RecordT = TypeVar("RecordT", bound=UpstreamRecord)


def _validate_records(items: Any, model: Type[RecordT], collection: str) -> List[RecordT]:
    if not isinstance(items, list):
        raise UpstreamError(f"Malformed {collection} response: expected a list, got {type(items).__name__}")
    try:
        return TypeAdapter(List[model]).validate_python(items)
    except PydanticValidationError as e:
        raise UpstreamError(f"Malformed {collection} record: {e.error_count()} validation error(s)") from e


def parse_company_envelope(payload: Any) -> List[Company]:
    """Validate a ``{success, data}`` companies response and return its records."""
    if not isinstance(payload, dict):
        raise UpstreamError("Malformed companies response: expected a JSON object")
    if payload.get("success") is not True:
        raise UpstreamError("API returned unsuccessful response")
    return _validate_records(payload.get("data"), Company, "companies")


def parse_record_list(payload: Any, model: Type[RecordT], collection: str) -> List[RecordT]:
    """Validate a bare JSON array response (events, podcasts)."""
    return _validate_records(payload, model, collection)
