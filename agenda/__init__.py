"""Weighted, trigger-driven priority selection for conversational agents."""

__version__ = "0.1.0"
