"""
Journey Builder - compiles wizard-built customer journeys into sequences.
"""

__version__ = "0.1.0"
