"""CatalAI: transformation-category classification decision core."""

__version__ = "2.1.0"
