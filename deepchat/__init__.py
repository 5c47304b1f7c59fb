"""Streaming chat panel for a locally running Ollama server."""

__version__ = "0.1.0"
