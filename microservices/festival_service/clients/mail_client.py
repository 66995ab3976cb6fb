"""
Mail Clients

Resend HTTP email client and the per-shop sender provider that resolves a
shop's stored, encrypted mail settings into a sender.
"""

import logging
from typing import Optional

import httpx

from core.config import MailConfig

from ..festival_repository import FestivalRepository
from ..models import MailMessage, MailProvider, SendReceipt
from ..protocols import CredentialCipherProtocol, CredentialDecryptionError, MailDeliveryError

logger = logging.getLogger(__name__)


class ResendMailClient:
    """Sends email through the Resend API"""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 30.0,
        from_email_override: Optional[str] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.from_email_override = from_email_override

    async def send(self, message: MailMessage) -> SendReceipt:
        """
        Send one email.

        Raises:
            MailDeliveryError: Resend rejected the message or was unreachable
        """
        if self.from_email_override:
            message = message.model_copy(update={"from_email": self.from_email_override})

        email_data = {
            "from": message.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            ) as client:
                response = await client.post("/emails", json=email_data)
        except httpx.HTTPError as e:
            raise MailDeliveryError(message.to, str(e) or type(e).__name__)

        if response.status_code not in (200, 201, 202):
            raise MailDeliveryError(message.to, f"Email API error: {response.status_code} - {response.text}")

        return SendReceipt(message_id=response.json().get("id", ""))


class ShopMailSenderProvider:
    """
    Resolves a shop's mail sender from its stored settings.

    Resend shops send with their own API key. Mailbox providers (gmail,
    outlook, yahoo, custom) are relayed through the service Resend account
    with the shop's sender name, and need RESEND_API_KEY and
    DEFAULT_FROM_EMAIL to be set.
    """

    def __init__(
        self,
        repository: FestivalRepository,
        cipher: CredentialCipherProtocol,
        config: Optional[MailConfig] = None,
    ):
        self.repository = repository
        self.cipher = cipher
        self.config = config or MailConfig.from_env()

    async def get_sender(self, shop_domain: str) -> Optional[ResendMailClient]:
        merchant = await self.repository.get_merchant_config(shop_domain)
        settings = merchant.email
        if not settings.is_configured:
            logger.info(f"No email settings configured for shop: {shop_domain}")
            return None

        try:
            credential = self.cipher.decrypt(settings.encrypted_credential)
        except CredentialDecryptionError as e:
            logger.error(f"Failed to decrypt mail credential for {shop_domain}: {e}")
            return None

        if settings.provider == MailProvider.RESEND:
            return ResendMailClient(
                api_key=credential,
                base_url=self.config.resend_base_url,
                timeout=self.config.send_timeout,
            )

        if not (self.config.resend_api_key and self.config.default_from_email):
            logger.warning(
                f"Shop {shop_domain} uses {settings.provider.value} but no relay account is configured"
            )
            return None

        return ResendMailClient(
            api_key=self.config.resend_api_key,
            base_url=self.config.resend_base_url,
            timeout=self.config.send_timeout,
            from_email_override=self.config.default_from_email,
        )
