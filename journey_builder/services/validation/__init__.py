"""
Wizard page validation.
"""
from .page_validator import WizardPage, first_error_page, validate_all, validate_page

__all__ = ["WizardPage", "first_error_page", "validate_all", "validate_page"]
