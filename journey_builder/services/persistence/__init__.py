"""
Sequence persistence.
"""
from .sequence_client import SequencePersistenceError, SequencesAPIClient

__all__ = ["SequencePersistenceError", "SequencesAPIClient"]
