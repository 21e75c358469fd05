"""
Message Template Library - default content per message purpose and channel.

Placeholders such as ``{{customer.name}}`` are left as-is; the execution
engine substitutes them when a message is sent.
"""
import logging
from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ChannelContent(BaseModel):
    """Template content for one channel."""
    subject: Optional[str] = None
    body: str


class MessageTemplate(BaseModel):
    """Default content for a message purpose."""
    purpose: str
    name: str
    email: ChannelContent
    sms: ChannelContent

    def for_channel(self, channel: str) -> Optional[ChannelContent]:
        return {"email": self.email, "sms": self.sms}.get(channel)


MESSAGE_TEMPLATES: Dict[str, Dict] = {
    "thank_you": {
        "name": "Thank You / Confirmation",
        "email": {
            "subject": "Thank you for choosing {{business.name}}!",
            "body": (
                "Hi {{customer.name}},\n\n"
                "Thank you for your business! We hope you had a great experience with our service.\n\n"
                "If you have any questions or need anything, please don't hesitate to reach out. "
                "We're here to help!\n\n"
                "Best regards,\nThe {{business.name}} Team"
            ),
        },
        "sms": {
            "body": "Hi {{customer.name}}, thank you for choosing {{business.name}}! We appreciate your business.",
        },
    },
    "follow_up": {
        "name": "Post-Service Follow-up",
        "email": {
            "subject": "How did everything go?",
            "body": (
                "Hi {{customer.name}},\n\n"
                "We wanted to check in and make sure everything went smoothly with your recent service.\n\n"
                "Your feedback is important to us! If there's anything we can improve or if you have "
                "any concerns, please let us know.\n\n"
                "We're here to help!\n\n"
                "Best,\n{{business.name}}"
            ),
        },
        "sms": {
            "body": (
                "Hi {{customer.name}}, just checking in! How did everything go with your service? "
                "Let us know if you need anything."
            ),
        },
    },
    "review_request": {
        "name": "Review Request",
        "email": {
            "subject": "We'd love your feedback!",
            "body": (
                "Hi {{customer.name}},\n\n"
                "We hope you loved your experience with {{business.name}}!\n\n"
                "Your feedback helps us improve and helps other customers make informed decisions. "
                "Would you mind taking 30 seconds to leave us a review?\n\n"
                "Leave a review here: {{review_link}}\n\n"
                "Thank you so much for your support!\n\n"
                "{{business.name}}"
            ),
        },
        "sms": {
            "body": "Hi {{customer.name}}, we'd love your feedback! Leave us a quick review here: {{review_link}} Thank you!",
        },
    },
    "rebooking": {
        "name": "Rebooking / Reschedule Prompt",
        "email": {
            "subject": "Ready to book your next appointment?",
            "body": (
                "Hi {{customer.name}},\n\n"
                "It's been a while since your last service with us! We'd love to see you again "
                "and help you with {{service.type}}.\n\n"
                "Click here to schedule your next appointment:\n{{booking_link}}\n\n"
                "Or call us at {{business.phone}} and we'll get you scheduled right away.\n\n"
                "Looking forward to serving you again!\n{{business.name}}"
            ),
        },
        "sms": {
            "body": (
                "Hi {{customer.name}}, ready to book your next appointment? "
                "Schedule here: {{booking_link}} or call {{business.phone}}"
            ),
        },
    },
    "retention": {
        "name": "Customer Retention / Win-back",
        "email": {
            "subject": "We miss you! Come back for 15% off",
            "body": (
                "Hi {{customer.name}},\n\n"
                "We noticed it's been a while since we last saw you. We miss having you as a customer!\n\n"
                "As a special thank you, we're offering you 15% off your next service. "
                "Just use code WELCOME15 when you book.\n\n"
                "Book now: {{booking_link}}\n\n"
                "We can't wait to serve you again!\n\n"
                "Best,\n{{business.name}}"
            ),
        },
        "sms": {
            "body": (
                "Hi {{customer.name}}, we miss you! Come back for 15% off with code WELCOME15. "
                "Book here: {{booking_link}}"
            ),
        },
    },
    "upsell": {
        "name": "Upsell / Promotion",
        "email": {
            "subject": "Special offer just for you!",
            "body": (
                "Hi {{customer.name}},\n\n"
                "Because you're a valued customer, we wanted to share this exclusive offer with you:\n\n"
                "{{offer.description}}\n\n"
                "This limited-time offer won't last long, so act fast!\n\n"
                "Learn more: {{offer_link}}\n\n"
                "Questions? Just reply to this email or call us at {{business.phone}}.\n\n"
                "Thank you for being an amazing customer!\n{{business.name}}"
            ),
        },
        "sms": {
            "body": "{{customer.name}}, exclusive offer for you! {{offer.description}} Learn more: {{offer_link}}",
        },
    },
    "custom": {
        "name": "Custom Message",
        "email": {
            "subject": "Message from {{business.name}}",
            "body": (
                "Hi {{customer.name}},\n\n"
                "[Write your custom message here]\n\n"
                "Best regards,\n{{business.name}}"
            ),
        },
        "sms": {
            "body": "Hi {{customer.name}}, [your custom message]",
        },
    },
}


class TemplateLibrary:
    """
    Read-only catalog of message templates keyed by purpose.

    The default catalog is the built-in set above; a custom mapping with the
    same shape can be supplied for tests or per-business overrides.
    """

    def __init__(self, templates: Optional[Dict[str, Dict]] = None):
        catalog = MESSAGE_TEMPLATES if templates is None else templates
        self._templates: Dict[str, MessageTemplate] = {
            purpose: MessageTemplate(purpose=purpose, **data)
            for purpose, data in catalog.items()
        }

    def has(self, purpose: str) -> bool:
        return purpose in self._templates

    def purposes(self) -> List[str]:
        return list(self._templates)

    def get(self, purpose: str, channel: str) -> Optional[ChannelContent]:
        """Content for ``purpose`` on ``channel``, or None when either is unknown."""
        template = self._templates.get(purpose)
        if template is None:
            logger.debug(f"No template for purpose '{purpose}'")
            return None
        return template.for_channel(channel)

    def to_dict(self) -> Dict[str, Dict]:
        return {
            purpose: template.model_dump(exclude={"purpose"}, exclude_none=True)
            for purpose, template in self._templates.items()
        }


@lru_cache()
def get_template_library() -> TemplateLibrary:
    """Get the cached built-in template library."""
    return TemplateLibrary()
