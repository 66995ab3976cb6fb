"""
Festival Service

Festival campaign lifecycle and notification engine providing:
- Festival name resolution from lunar, fixed and seasonal calendars
- Campaign synthesis (name, discount code, imagery, colours)
- Activation detection with at-most-once newsletters per period
- Newsletter fan-out to festival subscribers
- Duplicate campaign suppression
"""

__version__ = "1.0.0"
__service__ = "festival_service"
