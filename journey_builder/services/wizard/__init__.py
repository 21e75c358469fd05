"""
Wizard session and starter recipes.
"""
from .session import WizardSession, WizardSessionError
from .recipes import build_state_from_recipe, list_recipes

__all__ = ["WizardSession", "WizardSessionError", "build_state_from_recipe", "list_recipes"]
