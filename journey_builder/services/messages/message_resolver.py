"""
Message Resolver - final message content for communication steps.
"""
import logging
from typing import Optional

from journey_builder.models.journey import Step, StepMessage
from journey_builder.models.sequence import MessageConfig
from journey_builder.services.messages.template_library import TemplateLibrary, get_template_library
from journey_builder.utils.constants import (
    DEFAULT_MESSAGE_PURPOSE,
    FALLBACK_EMAIL_SUBJECT,
    FALLBACK_MESSAGE_BODY,
)

logger = logging.getLogger(__name__)


def message_purpose(step: Step) -> str:
    """The step's purpose key, "custom" when unset."""
    if step.message is None or not step.message.purpose:
        return DEFAULT_MESSAGE_PURPOSE
    return step.message.purpose


def resolve_message(step: Step, library: Optional[TemplateLibrary] = None) -> MessageConfig:
    """
    Resolve the content that ships with a communication step.

    Explicit subject/body on the step win verbatim, field by field. Missing
    fields come from the template for the step's purpose and channel, and
    when no template exists for the purpose a literal fallback is used.

    Args:
        step: A send_email or send_sms step
        library: Template catalog (defaults to the built-in library)

    Returns:
        MessageConfig with a body (and a subject for email)
    """
    if not step.is_communication:
        raise ValueError(f"Step '{step.id}' ({step.type.value}) carries no message")

    library = library or get_template_library()
    channel = step.channel
    purpose = message_purpose(step)
    message = step.message or StepMessage()

    template = library.get(purpose, channel)
    if template is None:
        logger.debug(
            "No template for purpose - using fallback content",
            extra={"purpose": purpose, "channel": channel, "step_id": step.id}
        )

    body = _explicit(message.body)
    if body is None:
        body = template.body if template is not None else FALLBACK_MESSAGE_BODY

    if channel != "email":
        return MessageConfig(body=body)

    subject = _explicit(message.subject)
    if subject is None:
        subject = template.subject if template is not None and template.subject else FALLBACK_EMAIL_SUBJECT

    return MessageConfig(subject=subject, body=body)


def select_purpose(step: Step, purpose: str) -> Step:
    """Change only the purpose; user-edited subject/body stay as they are."""
    message = (step.message or StepMessage()).model_copy(update={"purpose": purpose})
    return step.model_copy(update={"message": message})


def load_template(step: Step, library: Optional[TemplateLibrary] = None) -> Step:
    """
    Copy the template for the step's purpose into its subject/body.

    This is the explicit "load template" action and overwrites edits. With
    no template for the purpose the step is returned unchanged.
    """
    if not step.is_communication:
        raise ValueError(f"Step '{step.id}' ({step.type.value}) carries no message")

    library = library or get_template_library()
    purpose = message_purpose(step)
    template = library.get(purpose, step.channel)
    if template is None:
        return step

    message = StepMessage(
        purpose=purpose,
        subject=template.subject if step.channel == "email" else None,
        body=template.body,
    )
    return step.model_copy(update={"message": message})


def _explicit(value: Optional[str]) -> Optional[str]:
    # blank strings are what an untouched editor field holds
    if value is None or not value.strip():
        return None
    return value
