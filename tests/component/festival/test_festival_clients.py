"""
Component Tests for External Collaborator Clients

HTTP traffic is served by httpx.MockTransport; no network access.
"""

import io
import json

import httpx
import pytest
from PIL import Image

from core.config import MailConfig, ModelConfig
from microservices.festival_service.clients import (
    OpenRouterTextClient,
    PillowColorExtractor,
    PollinationsImageClient,
    ResendMailClient,
    ShopMailSenderProvider,
    StorefrontColorScraper,
)
from microservices.festival_service.clients.color_client import extract_colors, palette_from_colors
from microservices.festival_service.clients.image_client import enhance_prompt
from microservices.festival_service.clients.site_client import extract_colors_from_html
from microservices.festival_service.encryption import CredentialCipher
from microservices.festival_service.models import MailProvider
from microservices.festival_service.protocols import (
    CollaboratorUnavailableError,
    ImageGenerationError,
    MailDeliveryError,
    MalformedCollaboratorResponseError,
    SiteColorsUnavailableError,
)

from .mocks import SHOP

pytestmark = pytest.mark.component


@pytest.fixture
def serve(monkeypatch):
    """Route every httpx.AsyncClient through a MockTransport handler"""
    real_client = httpx.AsyncClient
    requests = []

    def install(handler):
        def recording_handler(request):
            requests.append(request)
            return handler(request)

        def client_factory(*args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(recording_handler)
            return real_client(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", client_factory)
        return requests

    return install


def png_bytes(split: int = 150) -> bytes:
    """200x200 image, red left of `split`, blue to the right"""
    image = Image.new("RGB", (200, 200), (255, 0, 0))
    image.paste((0, 0, 255), (split, 0, 200, 200))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


# =============================================================================
# Mail
# =============================================================================

class TestResendMailClient:

    @pytest.mark.asyncio
    async def test_send(self, serve, factory):
        requests = serve(lambda request: httpx.Response(200, json={"id": "em_123"}))
        client = ResendMailClient(api_key="re_key", base_url="https://mail.test")

        receipt = await client.send(factory.make_mail_message(to="jane@example.com"))

        assert receipt.message_id == "em_123"
        request = requests[0]
        assert request.url == "https://mail.test/emails"
        assert request.headers["Authorization"] == "Bearer re_key"
        body = json.loads(request.content)
        assert body["from"] == "Shop Test <offers@shop.test>"
        assert body["to"] == ["jane@example.com"]
        assert body["subject"] == "Festival of Lights"

    @pytest.mark.asyncio
    async def test_relay_overrides_sender_address(self, serve, factory):
        requests = serve(lambda request: httpx.Response(200, json={"id": "em_1"}))
        client = ResendMailClient(api_key="re_service", from_email_override="relay@festival.test")

        await client.send(factory.make_mail_message())

        assert json.loads(requests[0].content)["from"] == "Shop Test <relay@festival.test>"

    @pytest.mark.asyncio
    async def test_rejected(self, serve, factory):
        serve(lambda request: httpx.Response(422, json={"message": "invalid from"}))
        client = ResendMailClient(api_key="re_key")

        with pytest.raises(MailDeliveryError) as exc_info:
            await client.send(factory.make_mail_message(to="jane@example.com"))
        assert exc_info.value.recipient == "jane@example.com"
        assert "422" in str(exc_info.value)


class TestShopMailSenderProvider:

    @pytest.fixture
    def relay_config(self):
        return MailConfig(resend_api_key="re_service", default_from_email="relay@festival.test")

    async def _configure(self, repository, cipher, factory, provider=MailProvider.RESEND, enabled=True):
        config = factory.make_merchant_config(
            email=factory.make_email_settings(cipher.encrypt("re_shop_key"), provider=provider, enabled=enabled)
        )
        await repository.save_merchant_config(config)

    @pytest.mark.asyncio
    async def test_not_configured(self, repository, cipher):
        provider = ShopMailSenderProvider(repository, cipher, MailConfig())
        assert await provider.get_sender(SHOP) is None

    @pytest.mark.asyncio
    async def test_disabled(self, repository, cipher, factory):
        await self._configure(repository, cipher, factory, enabled=False)
        provider = ShopMailSenderProvider(repository, cipher, MailConfig())
        assert await provider.get_sender(SHOP) is None

    @pytest.mark.asyncio
    async def test_resend_shop_uses_own_key(self, repository, cipher, factory):
        await self._configure(repository, cipher, factory)
        provider = ShopMailSenderProvider(repository, cipher, MailConfig())

        sender = await provider.get_sender(SHOP)

        assert isinstance(sender, ResendMailClient)
        assert sender.api_key == "re_shop_key"
        assert sender.from_email_override is None

    @pytest.mark.asyncio
    async def test_mailbox_provider_relayed(self, repository, cipher, factory, relay_config):
        await self._configure(repository, cipher, factory, provider=MailProvider.GMAIL)
        provider = ShopMailSenderProvider(repository, cipher, relay_config)

        sender = await provider.get_sender(SHOP)

        assert sender.api_key == "re_service"
        assert sender.from_email_override == "relay@festival.test"

    @pytest.mark.asyncio
    async def test_mailbox_provider_without_relay(self, repository, cipher, factory):
        await self._configure(repository, cipher, factory, provider=MailProvider.OUTLOOK)
        provider = ShopMailSenderProvider(repository, cipher, MailConfig())

        assert await provider.get_sender(SHOP) is None

    @pytest.mark.asyncio
    async def test_undecryptable_credential(self, repository, cipher, factory):
        await self._configure(repository, cipher, factory)
        provider = ShopMailSenderProvider(repository, CredentialCipher("rotated-secret"), MailConfig())

        assert await provider.get_sender(SHOP) is None


# =============================================================================
# Text generation
# =============================================================================

class TestOpenRouterTextClient:

    @pytest.fixture
    def config(self):
        return ModelConfig(openrouter_api_key="or_key", openrouter_base_url="https://llm.test/v1")

    @pytest.mark.asyncio
    async def test_generate(self, serve, config):
        requests = serve(lambda request: httpx.Response(
            200, json={"choices": [{"message": {"content": "  Golden Autumn Celebration \n"}}]}
        ))

        reply = await OpenRouterTextClient(config).generate("Name this", max_tokens=50, temperature=0.8)

        assert reply == "Golden Autumn Celebration"
        request = requests[0]
        assert request.url == "https://llm.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer or_key"
        body = json.loads(request.content)
        assert body["max_tokens"] == 50
        assert body["messages"] == [{"role": "user", "content": "Name this"}]

    @pytest.mark.asyncio
    async def test_not_configured(self, serve):
        requests = serve(lambda request: httpx.Response(200))

        with pytest.raises(CollaboratorUnavailableError):
            await OpenRouterTextClient(ModelConfig()).generate("Name this")
        assert requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,detail", [
        (402, "credits exhausted"),
        (429, "rate limit exceeded"),
        (401, "invalid API key"),
        (500, "HTTP 500"),
    ])
    async def test_http_errors(self, serve, config, status, detail):
        requests = serve(lambda request: httpx.Response(status))

        with pytest.raises(CollaboratorUnavailableError) as exc_info:
            await OpenRouterTextClient(config).generate("Name this")
        assert detail in str(exc_info.value)
        assert len(requests) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"choices": []},
        {"error": "nope"},
        {"choices": [{"message": {"content": "   "}}]},
    ])
    async def test_malformed_responses(self, serve, config, payload):
        serve(lambda request: httpx.Response(200, json=payload))

        with pytest.raises(MalformedCollaboratorResponseError):
            await OpenRouterTextClient(config).generate("Name this")


# =============================================================================
# Image generation and palettes
# =============================================================================

class TestPollinationsImageClient:

    @pytest.fixture
    def client(self):
        return PollinationsImageClient(ModelConfig(image_base_url="https://img.test"))

    def test_build_url(self, client):
        url = client.build_url("diwali lights", seed=42)

        assert url.startswith("https://img.test/prompt/diwali%20lights?")
        assert "width=815&height=593" in url
        assert "&seed=42" in url
        assert url.endswith("&model=flux&enhance=true&nologo=true")

    def test_fallback_url_is_unseeded(self, client):
        url = client.fallback_url("festival of lights")
        assert "seed=" not in url
        assert "beautiful%20festive%20festival%20of%20lights" in url

    def test_enhance_prompt(self):
        assert enhance_prompt("holi").startswith("beautiful festive holi, vibrant colors")

    @pytest.mark.asyncio
    async def test_generate(self, serve, client):
        requests = serve(lambda request: httpx.Response(200, content=b"image"))

        url = await client.generate("festival of lights celebration background")

        assert url.startswith("https://img.test/prompt/")
        assert requests[0].method == "GET"
        assert requests[0].url.host == "img.test"
        assert "seed=" in url

    @pytest.mark.asyncio
    async def test_simplified_prompt_after_failure(self, serve, client):
        def handler(request):
            if request.method == "GET":
                return httpx.Response(500)
            return httpx.Response(200)

        requests = serve(handler)

        url = await client.generate("festival of lights celebration background with decorative elements")

        assert requests[1].method == "HEAD"
        assert "with%20decorative" not in url
        assert "festival%20of%20lights%20celebration%20background" in url

    @pytest.mark.asyncio
    async def test_both_attempts_fail(self, serve, client):
        serve(lambda request: httpx.Response(503))

        with pytest.raises(ImageGenerationError):
            await client.generate("festival of lights")


class TestPalette:

    def test_extract_colors_most_common_first(self):
        colors = extract_colors(png_bytes(split=150))

        assert colors[0] == (255, 0, 0)
        assert (0, 0, 255) in colors

    def test_palette_from_colors(self):
        palette = palette_from_colors([(255, 0, 0), (0, 0, 255)])

        assert palette.primary == "#ff0000"
        assert palette.background == "#0000ff"
        assert palette.text == "#ffffff"
        assert palette.palette == ["#ff0000", "#0000ff"]

    def test_single_colour_background_lightened(self):
        palette = palette_from_colors([(0, 0, 0)])
        assert palette.background != palette.primary

    @pytest.mark.asyncio
    async def test_extract_palette(self, serve):
        serve(lambda request: httpx.Response(200, content=png_bytes()))

        palette = await PillowColorExtractor().extract_palette("https://img.test/x.png")

        assert palette.primary == "#ff0000"

    @pytest.mark.asyncio
    async def test_unreadable_image(self, serve):
        serve(lambda request: httpx.Response(200, content=b"<html>not an image</html>"))

        with pytest.raises(MalformedCollaboratorResponseError):
            await PillowColorExtractor().extract_palette("https://img.test/x.png")

    @pytest.mark.asyncio
    async def test_download_failure(self, serve):
        serve(lambda request: httpx.Response(404))

        with pytest.raises(CollaboratorUnavailableError):
            await PillowColorExtractor().extract_palette("https://img.test/x.png")


# =============================================================================
# Storefront colours
# =============================================================================

STOREFRONT_HTML = """
<html>
  <head><style>body { background-color: #F5F5F5; } .btn { color: red; border-color: #222222; }</style></head>
  <body>
    <header style="background-color: #3366CC; color: #ffffff">Shop</header>
    <a style="color: #3366cc">Sale</a>
  </body>
</html>
"""


class TestStorefrontColours:

    def test_extract_colors_from_html(self):
        assert extract_colors_from_html(STOREFRONT_HTML) == ["#3366cc", "#ffffff", "#f5f5f5", "#222222"]

    def test_no_colours(self):
        assert extract_colors_from_html("<p style='margin: 0'>plain</p>") == []

    @pytest.mark.asyncio
    async def test_scrape_colors(self, serve):
        requests = serve(lambda request: httpx.Response(200, text=STOREFRONT_HTML))

        colors = await StorefrontColorScraper().scrape_colors(SHOP)

        assert colors.primary == "#3366cc"
        assert colors.header == "#003399"
        assert requests[0].url == f"https://{SHOP}"

    @pytest.mark.asyncio
    async def test_storefront_without_colours(self, serve):
        serve(lambda request: httpx.Response(200, text="<html><body>plain</body></html>"))

        with pytest.raises(SiteColorsUnavailableError):
            await StorefrontColorScraper().scrape_colors(SHOP)

    @pytest.mark.asyncio
    async def test_storefront_unreachable(self, serve):
        serve(lambda request: httpx.Response(502))

        with pytest.raises(SiteColorsUnavailableError):
            await StorefrontColorScraper().scrape_colors(SHOP)
