"""Voice-driven conversational assistant."""

__version__ = "0.1.0"
