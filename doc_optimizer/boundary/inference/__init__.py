"""
Inference service boundary.

Exports: OllamaClient
"""

from .ollama_client import OllamaClient

__all__ = ["OllamaClient"]
