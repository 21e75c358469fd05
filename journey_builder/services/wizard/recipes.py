"""
Starter journeys offered as one-click recipes.
"""
import logging
from typing import Any, Dict, List

from journey_builder.models.journey import StepMessage, StepTiming, StepType, TriggerSelection, WizardState
from journey_builder.services.flow.flow_model import new_step, normalize

logger = logging.getLogger(__name__)

JOURNEY_RECIPES: Dict[str, Dict[str, Any]] = {
    "job_completed_review": {
        "name": "Job Completed Review Request",
        "description": "Ask for a review by email after a job is completed, then follow up by SMS.",
        "crm": "jobber",
        "events": ["job_completed"],
        "manual": False,
        "steps": [
            {"type": "send_email", "purpose": "review_request"},
            {"type": "wait", "timing": {"value": 5, "unit": "hours"}},
            {"type": "send_sms", "purpose": "review_request"},
        ],
    },
    "invoice_paid_review": {
        "name": "Invoice Paid Thank You",
        "description": "Request a review as soon as an invoice is paid.",
        "crm": "qbo",
        "events": ["invoice_paid"],
        "manual": False,
        "steps": [
            {"type": "send_email", "purpose": "review_request"},
        ],
    },
    "service_reminder": {
        "name": "Service Reminder",
        "description": "Text a follow-up one day after manual enrollment.",
        "crm": None,
        "events": [],
        "manual": True,
        "steps": [
            {"type": "wait", "timing": {"value": 24, "unit": "hours"}},
            {"type": "send_sms", "purpose": "follow_up"},
        ],
    },
}


def list_recipes() -> List[Dict[str, Any]]:
    """Recipe cards: key, name, description and step outline."""
    return [
        {
            "key": key,
            "name": recipe["name"],
            "description": recipe["description"],
            "trigger": recipe["crm"] or "manual",
            "steps": [step["type"] for step in recipe["steps"]],
        }
        for key, recipe in JOURNEY_RECIPES.items()
    ]


def build_state_from_recipe(key: str) -> WizardState:
    """
    Build a fresh wizard state from a recipe.

    Raises:
        KeyError: If no recipe exists for ``key``
    """
    if key not in JOURNEY_RECIPES:
        raise KeyError(f"Unknown journey recipe: {key}")

    recipe = JOURNEY_RECIPES[key]
    steps = []
    for outline in recipe["steps"]:
        step_type = StepType(outline["type"])
        timing = StepTiming(**outline["timing"]) if "timing" in outline else None
        message = StepMessage(purpose=outline["purpose"]) if "purpose" in outline else None
        steps.append(new_step(step_type, timing=timing, message=message))

    logger.debug(f"Building journey from recipe '{key}'")
    return WizardState(
        name=recipe["name"],
        description=recipe["description"],
        steps=normalize(steps),
        trigger=TriggerSelection(
            crm=recipe["crm"],
            events=list(recipe["events"]),
            manual_enabled=recipe["manual"],
        ),
    )
