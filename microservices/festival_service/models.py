"""
Festival Service Data Models

Pydantic models for campaigns, subscribers, merchant configuration,
newsletter history and the structured results returned by the engine.

Persisted records written by older versions of the storefront app use
camelCase keys; every stored model accepts both spellings on load and
dumps snake_case.
"""

import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# HELPERS
# =============================================================================

_SPECIAL_WORD = re.compile(r"\bSpecial\b", re.IGNORECASE)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Any) -> datetime:
    """Coerce a date, datetime or ISO string into an aware UTC datetime"""
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            value = datetime.combine(date.fromisoformat(text), datetime.min.time())
        else:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    if not isinstance(value, datetime):
        raise ValueError(f"Unsupported date value: {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def strip_special(name: str) -> str:
    """Remove the standalone word "Special" and collapse whitespace"""
    return re.sub(r"\s+", " ", _SPECIAL_WORD.sub("", name or "")).strip()


def make_campaign_id() -> str:
    return f"fst_{uuid4().hex[:16]}"


def make_subscriber_id() -> str:
    return f"sub_{uuid4().hex[:16]}"


def make_record_id() -> str:
    return f"nws_{uuid4().hex[:16]}"


# =============================================================================
# ENUMS
# =============================================================================

class SubscriptionType(str, Enum):
    """Newsletter audience segment"""
    FESTIVAL = "festival"
    BLOG = "blog"


class MailProvider(str, Enum):
    """Merchant mail transport"""
    RESEND = "resend"
    GMAIL = "gmail"
    OUTLOOK = "outlook"
    YAHOO = "yahoo"
    CUSTOM = "custom"


class DispatchStatus(str, Enum):
    """Outcome of a newsletter dispatch"""
    SENT = "sent"
    PARTIAL = "partial"
    FAILED = "failed"
    NO_SUBSCRIBERS = "no_subscribers"
    NOT_CONFIGURED = "not_configured"


class CreateStatus(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"


class SubscribeStatus(str, Enum):
    SUBSCRIBED = "subscribed"
    REACTIVATED = "reactivated"
    ALREADY_SUBSCRIBED = "already_subscribed"
    UNSUBSCRIBED = "unsubscribed"
    NOT_FOUND = "not_found"


# =============================================================================
# BASE
# =============================================================================

class StoredModel(BaseModel):
    """Base for persisted records, tolerant of camelCase legacy keys"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================================
# COLOURS
# =============================================================================

class SiteColors(BaseModel):
    """Colours scraped from a merchant storefront"""
    primary: str
    header: str


class ImagePalette(StoredModel):
    """Colours extracted from a generated background image"""
    primary: str
    background: Optional[str] = None
    text: Optional[str] = None
    palette: List[str] = Field(default_factory=list)


# =============================================================================
# CAMPAIGN
# =============================================================================

class Campaign(StoredModel):
    """A time-boxed festival promotion shown in the storefront popup"""
    campaign_id: str = Field(default_factory=make_campaign_id)
    name: str = ""
    offer: str = ""
    discount_code: str = ""
    start_date: datetime
    end_date: datetime

    background_color: str = "#FFFFFF"
    text_color: str = "#000000"
    header_color: str = "#333333"
    background_image_url: str = ""
    background_image_prompt: str = ""
    image_colors: Optional[ImagePalette] = None

    is_infinite: bool = False
    original_start_date: Optional[datetime] = None
    current_period_start: Optional[datetime] = None

    auto_newsletter_sent: bool = False
    newsletter_sent_at: Optional[datetime] = Field(default=None, alias="newsLetterSentAt")

    created_at: datetime = Field(default_factory=utc_now)

    @field_validator(
        "start_date", "end_date", "original_start_date",
        "current_period_start", "newsletter_sent_at", "created_at",
        mode="before",
    )
    @classmethod
    def coerce_dates(cls, v):
        if v is None or v == "":
            return None
        return as_utc(v)

    @field_validator("name")
    @classmethod
    def remove_special(cls, v: str) -> str:
        return strip_special(v)

    @field_validator("discount_code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return (v or "").upper()


# =============================================================================
# SUBSCRIBERS
# =============================================================================

class SubscriberPreferences(StoredModel):
    """Per-subscriber content flags"""
    festivals: bool = True
    offers: bool = True
    blog_updates: bool = False

    @classmethod
    def for_type(cls, subscription_type: SubscriptionType) -> "SubscriberPreferences":
        if subscription_type == SubscriptionType.BLOG:
            return cls(festivals=False, offers=False, blog_updates=True)
        return cls(festivals=True, offers=True, blog_updates=False)


class Subscriber(StoredModel):
    """A newsletter subscriber, unique per (email, shop_domain, subscription_type)"""
    subscriber_id: str = Field(default_factory=make_subscriber_id)
    email: str
    shop_domain: str
    subscription_type: SubscriptionType = SubscriptionType.FESTIVAL
    preferences: Optional[SubscriberPreferences] = None
    is_active: bool = True
    subscribed_at: datetime = Field(default_factory=utc_now)
    unsubscribed_at: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid email address")
        return v

    @field_validator("subscribed_at", "unsubscribed_at", mode="before")
    @classmethod
    def coerce_dates(cls, v):
        if v is None or v == "":
            return None
        return as_utc(v)

    @model_validator(mode="after")
    def default_preferences(self):
        if self.preferences is None:
            self.preferences = SubscriberPreferences.for_type(self.subscription_type)
        return self

    def identity(self) -> tuple:
        return (self.email, self.shop_domain, self.subscription_type)


# =============================================================================
# MERCHANT CONFIGURATION
# =============================================================================

class PopupSettings(StoredModel):
    """Storefront popup display settings"""
    is_active: bool = True
    show_delay_ms: int = Field(default=3000, ge=0)
    display_frequency: str = "once_per_session"
    position: str = "center"


class EmailSettings(StoredModel):
    """Per-shop mail transport settings; the credential is stored encrypted"""
    enabled: bool = False
    provider: MailProvider = MailProvider.RESEND
    from_email: str = ""
    from_name: str = ""
    encrypted_credential: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.from_email) and bool(self.encrypted_credential)


class EmailSettingsUpdate(BaseModel):
    """Merchant-submitted mail settings with a plaintext credential"""
    provider: MailProvider = MailProvider.RESEND
    from_email: str
    from_name: str = ""
    credential: str = Field(..., min_length=1)


class MerchantConfig(StoredModel):
    """Per-shop configuration"""
    shop_domain: str
    store_name: str = ""
    popup: PopupSettings = Field(default_factory=PopupSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)

    @property
    def display_name(self) -> str:
        return self.store_name or self.shop_domain.split(".")[0].replace("-", " ").title()


# =============================================================================
# NEWSLETTERS
# =============================================================================

class NewsletterContent(BaseModel):
    """Generated newsletter copy"""
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class BlogPost(BaseModel):
    """A merchant blog post to mail to blog subscribers"""
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class NewsletterRecord(StoredModel):
    """Audit record of a newsletter sent for a campaign"""
    record_id: str = Field(default_factory=make_record_id)
    shop_domain: str
    campaign_id: Optional[str] = None
    title: str
    content: str
    published_at: datetime = Field(default_factory=utc_now)
    sent_newsletter: bool = False
    emails_sent: int = 0
    emails_failed: int = 0
    tags: List[str] = Field(default_factory=list)


class MailMessage(BaseModel):
    """A single outbound email"""
    from_email: str
    from_name: str = ""
    to: str
    subject: str
    html: str

    @property
    def sender(self) -> str:
        if self.from_name:
            return f"{self.from_name} <{self.from_email}>"
        return self.from_email


class SendReceipt(BaseModel):
    message_id: str = ""


# =============================================================================
# RESULTS
# =============================================================================

class RecipientFailure(BaseModel):
    email: str
    error: str


class DispatchResult(BaseModel):
    """Structured outcome of a newsletter dispatch"""
    success: bool
    status: DispatchStatus
    emails_sent: int = 0
    emails_failed: int = 0
    message: str = ""
    title: Optional[str] = None
    failures: List[RecipientFailure] = Field(default_factory=list)
    used_fallback_content: bool = False


class CreateCampaignResult(BaseModel):
    """Outcome of a campaign creation request"""
    status: CreateStatus
    campaign: Optional[Campaign] = None
    message: str = ""
    dispatches: List[DispatchResult] = Field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.status == CreateStatus.CREATED


class SubscribeResult(BaseModel):
    """Outcome of a subscribe or unsubscribe request"""
    status: SubscribeStatus
    subscriber: Optional[Subscriber] = None
    message: str = ""
    welcome_email_sent: bool = False


__all__ = [
    # Helpers
    "utc_now",
    "as_utc",
    "strip_special",
    "make_campaign_id",
    # Enums
    "SubscriptionType",
    "MailProvider",
    "DispatchStatus",
    "CreateStatus",
    "SubscribeStatus",
    # Stored models
    "StoredModel",
    "SiteColors",
    "ImagePalette",
    "Campaign",
    "SubscriberPreferences",
    "Subscriber",
    "PopupSettings",
    "EmailSettings",
    "EmailSettingsUpdate",
    "MerchantConfig",
    "NewsletterContent",
    "BlogPost",
    "NewsletterRecord",
    "MailMessage",
    "SendReceipt",
    # Results
    "RecipientFailure",
    "DispatchResult",
    "CreateCampaignResult",
    "SubscribeResult",
]
