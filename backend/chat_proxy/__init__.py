"""Streaming chat proxy in front of an OpenAI-compatible provider."""

__version__ = "0.1.0"
