"""Validation package."""

from rf_manager.validation.validator import MutationValidator, parse_amount

__all__ = ["MutationValidator", "parse_amount"]
