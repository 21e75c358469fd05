"""
Message template services.
"""
from .template_library import MessageTemplate, TemplateLibrary, get_template_library
from .message_resolver import load_template, message_purpose, resolve_message, select_purpose

__all__ = [
    "MessageTemplate",
    "TemplateLibrary",
    "get_template_library",
    "load_template",
    "message_purpose",
    "resolve_message",
    "select_purpose",
]
