"""
Newsletter copy and email HTML

Prompt for generated festival newsletters, the hand-written fallback copy
used when generation fails, the HTML shells for festival and welcome
emails, and the blog newsletter subject and HTML.
"""

import json
import re
from collections import Counter
from datetime import datetime
from html import escape
from typing import Optional

from pydantic import ValidationError

from .color_utils import is_hex_color, scale_brightness
from .models import BlogPost, Campaign, NewsletterContent, SubscriptionType
from .protocols import MalformedCollaboratorResponseError

TEXT_COLOR = "#ffffff"
DEFAULT_BACKGROUND = "#333333"
WELCOME_SUBJECT = "🎉 Special Festival Offer from {store_name}!"

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")
_INLINE_COLOR = re.compile(r"(?<![-\w])color:\s*#[0-9a-fA-F]{6}")
_INLINE_BACKGROUND = re.compile(r"background-color:\s*#[0-9a-fA-F]{6}")


def format_date(value: datetime) -> str:
    """1 October 2025"""
    return f"{value.day} {value:%B %Y}"


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def newsletter_prompt(campaign: Campaign) -> str:
    return f"""You are an expert email marketing specialist creating an engaging newsletter for a new festival promotion. Generate compelling newsletter content based on the festival details below.

FESTIVAL DETAILS:
- Festival Name: {campaign.name}
- Offer: {campaign.offer}
- Discount Code: {campaign.discount_code}
- Start Date: {format_date(campaign.start_date)}
- End Date: {format_date(campaign.end_date)}
- Festival Colors: Background {campaign.background_color}

REQUIREMENTS:
1. Create an engaging EMAIL SUBJECT LINE (8-12 words max)
2. Write 150-250 words of festive, enthusiastic newsletter content covering the offer, the savings and a call to action
3. Use universal product terms ("products", "favorites", "bestsellers") that suit any store
4. Use only <p>, <strong>, <ul>, <li> tags, all with style='color: #ffffff;'
5. No background colours, wrappers, placeholder links or signatures

OUTPUT FORMAT:
Return ONLY a JSON object with these exact keys:
{{
  "title": "Your engaging email subject line here",
  "content": "Your newsletter content in HTML format"
}}"""


def parse_newsletter_reply(reply: str) -> NewsletterContent:
    """Extract {title, content} from a generated reply"""
    match = _JSON_BLOCK.search(reply or "")
    if not match:
        raise MalformedCollaboratorResponseError("text generator", "no JSON object in reply")
    try:
        data = json.loads(match.group(0))
        return NewsletterContent.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise MalformedCollaboratorResponseError("text generator", str(e))


def unparsed_reply_content(campaign: Campaign) -> NewsletterContent:
    """Short fallback for a reply that was not valid JSON"""
    name = escape(campaign.name)
    offer = escape(campaign.offer)
    code = escape(campaign.discount_code)
    return NewsletterContent(
        title=f"{campaign.name} Special: Exclusive {campaign.offer}!",
        content=(
            f'<p style="color: #ffffff;">🎉 Exciting news! {name} is here with an amazing {offer} offer!</p>'
            f'<p style="color: #ffffff;">Use code <strong style="color: #ffffff;">{code}</strong> to unlock '
            f"your exclusive discount. This limited-time offer is valid until {format_date(campaign.end_date)}.</p>"
            '<p style="color: #ffffff;">Don\'t miss out on this festive opportunity to discover amazing '
            "products and unbeatable deals!</p>"
            '<p style="color: #ffffff;">Happy shopping! 🛍️</p>'
        ),
    )


def fallback_content(campaign: Campaign) -> NewsletterContent:
    """Full fallback used when the text generator is unavailable"""
    name = escape(campaign.name)
    offer = escape(campaign.offer)
    code = escape(campaign.discount_code)
    ends = format_date(campaign.end_date)
    return NewsletterContent(
        title=f"🎉 {campaign.name} Festival Special: {campaign.offer}!",
        content=f"""
        <p style="color: #ffffff;">🎊 <strong style="color: #ffffff;">Celebrate {name} with Exclusive Savings!</strong></p>
        <p style="color: #ffffff;">We're thrilled to announce our {name} festival celebration with an incredible <strong style="color: #ffffff;">{offer}</strong> discount on your favorite items!</p>
        <ul style="margin-left: 20px; line-height: 1.6; color: #ffffff;">
          <li style="color: #ffffff;">🎁 Exclusive {offer} discount</li>
          <li style="color: #ffffff;">🛍️ Wide selection of quality products</li>
          <li style="color: #ffffff;">⚡ Limited-time offer ending {ends}</li>
        </ul>
        <p style="color: #ffffff;">🎯 <strong style="color: #ffffff;">Ready to shop?</strong> Use your exclusive discount code <strong style="color: #ffffff;">{code}</strong> at checkout!</p>
        <p style="text-align: center; margin-top: 30px; color: #ffffff;"><strong style="color: #ffffff;">Happy Shopping! 🛍️</strong></p>
        """,
    )


def render_festival_email(campaign: Campaign, content: NewsletterContent) -> str:
    """Festival newsletter HTML; generated copy is forced to white text on the campaign background"""
    background = campaign.background_color if is_hex_color(campaign.background_color) else DEFAULT_BACKGROUND
    gradient_end = scale_brightness(background, -20)
    body = _INLINE_BACKGROUND.sub(f"background-color: {background}", content.content)
    body = _INLINE_COLOR.sub(f"color: {TEXT_COLOR}", body)
    name = escape(campaign.name)
    offer = escape(campaign.offer)
    code = escape(campaign.discount_code)

    return f"""
      <div style="max-width: 600px; margin: 0 auto; font-family: Arial, sans-serif;">
        <div style="background: linear-gradient(135deg, {background} 0%, {gradient_end} 100%); color: #ffffff; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
          <h1 style="margin: 0; font-size: 28px; color: #ffffff;">{escape(content.title)}</h1>
        </div>
        <div style="background: {background}; color: #ffffff; padding: 25px; text-align: center; margin: 0;">
          <h2 style="color: #ffffff; margin: 0 0 10px 0;">🎉 {name} is Here!</h2>
          <p style="color: #ffffff; font-size: 18px; margin: 10px 0; font-weight: bold;">{offer}</p>
          <p style="color: #ffffff; font-size: 14px; margin: 5px 0;">Use code: <strong style="background: rgba(255,255,255,0.2); color: #ffffff; padding: 5px 10px; border-radius: 5px;">{code}</strong></p>
          <p style="color: #ffffff; font-size: 12px; margin: 10px 0;">Valid from {format_date(campaign.start_date)} to {format_date(campaign.end_date)}</p>
        </div>
        <div style="background: {background}; padding: 30px; border-radius: 0 0 10px 10px;">
          <div style="color: #ffffff; line-height: 1.6; margin: 15px 0;">
            {body}
          </div>
          <div style="text-align: center; margin-top: 30px; padding: 20px; background: rgba(255,255,255,0.1); border-radius: 8px;">
            <h3 style="color: #ffffff; margin: 0 0 15px 0;">🛒 Shop Now & Save!</h3>
            <p style="color: #ffffff; font-size: 16px; font-weight: bold; margin: 0;">Visit our store and use code <strong style="color: #ffffff;">{code}</strong> for {offer} discount!</p>
          </div>
          <div style="text-align: center; margin-top: 30px; padding-top: 20px; border-top: 1px solid #ddd;">
            <p style="color: #999; font-size: 12px; margin: 5px 0;">You're receiving this because you subscribed to festival updates.</p>
            <a href="#" style="color: #999; font-size: 12px;">Unsubscribe</a>
          </div>
        </div>
      </div>
    """


# =============================================================================
# BLOG NEWSLETTERS
# =============================================================================

BLOG_FALLBACK_TITLE = "Weekly Newsletter: Fresh Content & Special Offers"
BLOG_STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "are", "this", "that", "they", "them", "their", "over",
    "while", "from", "have", "your", "will", "more", "what", "when", "which",
    "there", "were", "been", "into", "about", "just", "also",
}
_WORD = re.compile(r"[a-z]+")


def blog_keyword(content: str) -> Optional[str]:
    """Most frequent meaningful word of a post, first-seen wins ties"""
    text = re.sub(r"<[^>]+>", " ", content or "").lower()
    words = [w for w in _WORD.findall(text) if len(w) > 3 and w not in BLOG_STOP_WORDS]
    if not words:
        return None
    return Counter(words).most_common(1)[0][0].capitalize()


def blog_title(content: str, campaign: Optional[Campaign] = None) -> str:
    """Subject line for a blog newsletter, naming the running festival when there is one"""
    keyword = blog_keyword(content)
    if keyword is None:
        return BLOG_FALLBACK_TITLE
    if campaign is not None:
        return f"{campaign.name} Special: {keyword} Insights & More!"
    return f"Latest Update: {keyword} & Essential Tips"


def render_blog_email(title: str, post: BlogPost, campaign: Optional[Campaign] = None) -> str:
    """Blog newsletter HTML with the running festival's offer block when there is one"""
    offer_block = ""
    if campaign is not None:
        background = campaign.background_color if is_hex_color(campaign.background_color) else DEFAULT_BACKGROUND
        text = campaign.text_color if is_hex_color(campaign.text_color) else TEXT_COLOR
        offer_block = f"""
        <div style="background: {background}; color: {text}; padding: 25px; text-align: center; margin: 0;">
          <h2 style="color: {text}; margin: 0 0 10px 0;">🎉 {escape(campaign.name)} Special Offer!</h2>
          <p style="color: {text}; font-size: 18px; margin: 10px 0; font-weight: bold;">{escape(campaign.offer)}</p>
          <p style="color: {text}; font-size: 14px; margin: 5px 0;">Use code: <strong style="background: rgba(255,255,255,0.2); color: {text}; padding: 5px 10px; border-radius: 5px;">{escape(campaign.discount_code)}</strong></p>
        </div>
        """
    body = post.content.replace("\n", "<br>")

    return f"""
      <div style="max-width: 600px; margin: 0 auto; font-family: Arial, sans-serif;">
        <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: #ffffff; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
          <h1 style="margin: 0; font-size: 28px;">{escape(title)}</h1>
        </div>
        {offer_block}
        <div style="background: #ffffff; padding: 30px; border-radius: 0 0 10px 10px;">
          <div style="background: #f9f9f9; padding: 25px; border-radius: 8px; margin: 20px 0;">
            <h3 style="color: #333; margin: 0 0 15px 0;">📖 Latest from Our Blog:</h3>
            <h4 style="color: #667eea; margin: 0 0 15px 0;">{escape(post.title)}</h4>
            <div style="color: #333; line-height: 1.6; margin: 15px 0;">{body}</div>
          </div>
          <div style="text-align: center; margin-top: 30px; padding-top: 20px; border-top: 1px solid #ddd;">
            <p style="color: #999; font-size: 12px; margin: 5px 0;">You're receiving this because you subscribed to our newsletter.</p>
            <a href="#" style="color: #999; font-size: 12px;">Unsubscribe</a>
          </div>
        </div>
      </div>
    """


def welcome_subject(store_name: str, subscription_type: SubscriptionType) -> str:
    if subscription_type == SubscriptionType.BLOG:
        return f"📝 Welcome to the {store_name} blog!"
    return WELCOME_SUBJECT.format(store_name=store_name)


def render_welcome_email(
    store_name: str,
    subscription_type: SubscriptionType,
    campaign: Optional[Campaign] = None,
) -> str:
    """Welcome email, including the running campaign's code when there is one"""
    store = escape(store_name)
    if subscription_type == SubscriptionType.BLOG:
        intro = f"Thanks for subscribing to blog updates from {store}. New posts will land in your inbox."
    else:
        intro = f"Thanks for subscribing to festival offers from {store}. You'll hear about every celebration first."

    offer_block = ""
    if campaign is not None:
        offer_block = (
            f'<p style="font-size: 18px; font-weight: bold;">{escape(campaign.name)}: {escape(campaign.offer)}</p>'
            f'<p>Use code <strong>{escape(campaign.discount_code)}</strong> '
            f"before {format_date(campaign.end_date)}.</p>"
        )

    return f"""
      <div style="max-width: 600px; margin: 0 auto; font-family: Arial, sans-serif; text-align: center; padding: 30px;">
        <h1 style="margin: 0 0 15px 0;">Welcome to {store}! 🎉</h1>
        <p>{intro}</p>
        {offer_block}
        <p style="color: #999; font-size: 12px; margin-top: 30px;">You can unsubscribe at any time.</p>
      </div>
    """
