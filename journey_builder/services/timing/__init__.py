"""
Step timing services.
"""
from .timing_resolver import format_timing, resolve_step_timing, resolve_wait_ms, to_ms
from .timing_advisor import TimingAdvisor, TimingSuggestion, fallback_suggestion

__all__ = [
    "format_timing",
    "resolve_step_timing",
    "resolve_wait_ms",
    "to_ms",
    "TimingAdvisor",
    "TimingSuggestion",
    "fallback_suggestion",
]
