"""
Festival Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from typing import Any, List, Optional, Protocol

from .models import ImagePalette, MailMessage, SendReceipt, SiteColors


# ====================
# Persistence Protocol
# ====================


class KeyValueStoreProtocol(Protocol):
    """Per-shop, per-key JSON document store"""

    async def get(self, shop_domain: str, key: str) -> Optional[Any]:
        """Read a JSON value, None when absent"""
        ...

    async def set(self, shop_domain: str, key: str, value: Any) -> None:
        """Write a JSON value, replacing any previous value"""
        ...

    async def list_shops(self) -> List[str]:
        """List every shop with at least one stored key"""
        ...


# ====================
# Collaborator Protocols
# ====================


class TextGeneratorProtocol(Protocol):
    """Free-form text generation"""

    async def generate(
        self, prompt: str, *, max_tokens: int = 200, temperature: float = 0.7
    ) -> str:
        """Generate a completion for a prompt"""
        ...


class ImageGeneratorProtocol(Protocol):
    """Background image generation"""

    async def generate(self, prompt: str) -> str:
        """Generate an image and return its URL"""
        ...

    def fallback_url(self, prompt: str) -> str:
        """Degraded image URL returned without contacting the service"""
        ...


class ColorExtractorProtocol(Protocol):
    """Dominant colour extraction from an image"""

    async def extract_palette(self, image_url: str) -> ImagePalette:
        """Extract primary/background/text colours and a palette"""
        ...


class SiteScraperProtocol(Protocol):
    """Storefront colour scraping"""

    async def scrape_colors(self, shop_domain: str) -> SiteColors:
        """Return the storefront primary and header colours"""
        ...


class MailSenderProtocol(Protocol):
    """Outbound email transport for one shop"""

    async def send(self, message: MailMessage) -> SendReceipt:
        """Send one email"""
        ...


class MailSenderProviderProtocol(Protocol):
    """Resolves the configured mail sender for a shop"""

    async def get_sender(self, shop_domain: str) -> Optional[MailSenderProtocol]:
        """Mail sender for the shop, None when email is not configured"""
        ...


class CredentialCipherProtocol(Protocol):
    """Symmetric encryption for stored credentials"""

    def encrypt(self, plain_text: str) -> str:
        ...

    def decrypt(self, token: str) -> str:
        ...


# ====================
# Custom Exceptions
# ====================


class FestivalServiceError(Exception):
    """Base exception for festival service"""

    pass


class CollaboratorUnavailableError(FestivalServiceError):
    """External collaborator is down, timed out or not configured"""

    def __init__(self, collaborator: str, detail: str = ""):
        self.collaborator = collaborator
        self.detail = detail
        message = f"{collaborator} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedCollaboratorResponseError(FestivalServiceError):
    """Collaborator answered with something unusable"""

    def __init__(self, collaborator: str, detail: str = ""):
        self.collaborator = collaborator
        self.detail = detail
        super().__init__(f"Malformed response from {collaborator}: {detail}")


class ImageGenerationError(CollaboratorUnavailableError):
    """Background image could not be generated"""

    def __init__(self, detail: str = ""):
        super().__init__("image generator", detail)


class SiteColorsUnavailableError(CollaboratorUnavailableError):
    """No usable colours could be scraped from a storefront"""

    def __init__(self, shop_domain: str, detail: str = ""):
        self.shop_domain = shop_domain
        super().__init__("site scraper", f"{shop_domain} {detail}".strip())


class MailDeliveryError(FestivalServiceError):
    """A single email could not be delivered"""

    def __init__(self, recipient: str, detail: str = ""):
        self.recipient = recipient
        self.detail = detail
        super().__init__(f"Failed to deliver to {recipient}: {detail}")


class CredentialDecryptionError(FestivalServiceError):
    """Stored credential could not be decrypted"""

    pass


class InvalidSubscriptionTypeError(FestivalServiceError):
    """Subscription type is not festival or blog"""

    def __init__(self, subscription_type: str):
        self.subscription_type = subscription_type
        super().__init__(
            f"Invalid subscription type '{subscription_type}'. Must be 'festival' or 'blog'"
        )


__all__ = [
    # Protocols
    "KeyValueStoreProtocol",
    "TextGeneratorProtocol",
    "ImageGeneratorProtocol",
    "ColorExtractorProtocol",
    "SiteScraperProtocol",
    "MailSenderProtocol",
    "MailSenderProviderProtocol",
    "CredentialCipherProtocol",
    # Exceptions
    "FestivalServiceError",
    "CollaboratorUnavailableError",
    "MalformedCollaboratorResponseError",
    "ImageGenerationError",
    "SiteColorsUnavailableError",
    "MailDeliveryError",
    "CredentialDecryptionError",
    "InvalidSubscriptionTypeError",
]
