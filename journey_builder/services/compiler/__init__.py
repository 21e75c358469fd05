"""
Sequence compilation.
"""
from .sequence_compiler import (
    CompileInvariantError,
    SequenceCompiler,
    SubmissionInProgressError,
)

__all__ = [
    "CompileInvariantError",
    "SequenceCompiler",
    "SubmissionInProgressError",
]
