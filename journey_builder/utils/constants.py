"""
Constants used throughout the application.
"""

from typing import Dict, List

# HTTP Error Response Codes
ERROR_RESPONSES: Dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    429: "TOO_MANY_REQUESTS",
    500: "INTERNAL_SERVER_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
    504: "GATEWAY_TIMEOUT",
}

# Channel per communication step type
STEP_CHANNELS = {
    "send_email": "email",
    "send_sms": "sms",
}

# Timing units (milliseconds per unit)
UNIT_MS: Dict[str, int] = {
    "minutes": 60_000,
    "hours": 3_600_000,
    "days": 86_400_000,
}

DEFAULT_TIMING_UNIT = "hours"
DEFAULT_TIMING_VALUE = 0

# Message defaults
DEFAULT_MESSAGE_PURPOSE = "custom"
FALLBACK_MESSAGE_BODY = "Thank you for your business!"
FALLBACK_EMAIL_SUBJECT = "A message from {{business.name}}"

# Sequence defaults
DEFAULT_QUIET_HOURS_START = "22:00"
DEFAULT_QUIET_HOURS_END = "08:00"
DEFAULT_SEQUENCE_STATUS = "active"
DEFAULT_RATE_LIMIT = 100  # messages per day
MANUAL_TRIGGER_SOURCE = "manual"
TRIGGER_STEP_ID = "trigger"

# CRM systems that can trigger a journey
CRM_OPTIONS: Dict[str, str] = {
    "qbo": "QuickBooks Online",
    "jobber": "Jobber",
    "housecall_pro": "Housecall Pro",
    "servicetitan": "ServiceTitan",
}

# Trigger events available per CRM
CRM_TRIGGER_EVENTS: Dict[str, List[str]] = {
    "qbo": [
        "invoice_created",
        "invoice_sent",
        "invoice_paid",
        "invoice_overdue",
        "invoice_voided",
        "customer_created",
        "customer_updated",
        "payment_received",
        "payment_failed",
        "estimate_created",
        "estimate_sent",
        "estimate_accepted",
        "estimate_declined",
        "sales_receipt_created",
        "credit_memo_created",
        "credit_memo_sent",
        "refund_processed",
    ],
    "jobber": [
        "job_completed",
        "job_scheduled",
        "invoice_paid",
        "client_created",
    ],
    "housecall_pro": [
        "job_completed",
        "invoice_paid",
    ],
    "servicetitan": [
        "job_completed",
        "invoice_paid",
        "customer_created",
    ],
}

# AI timing fallback (used when the timing service is unreachable)
AI_TIMING_FALLBACK_DELAY = {
    "email": 3,
    "sms": 2,
}
AI_TIMING_FALLBACK_UNIT = "hours"
AI_TIMING_FALLBACK_CONFIDENCE = 75
AI_TIMING_TRIGGER_TYPE = "review_request"

# Wizard events
EVENT_SCROLL_TO_FIRST_ERROR = "scroll_to_first_error"

# Logging Constants
LOG_CONTEXT_REQUEST_ID = "request_id"
LOG_CONTEXT_USER_ID = "user_id"
LOG_CONTEXT_SEQUENCE_NAME = "sequence_name"
LOG_CONTEXT_SEQUENCE_ID = "sequence_id"
LOG_CONTEXT_COMPILE_TIME = "compile_time_ms"
LOG_CONTEXT_STEP_COUNT = "step_count"
