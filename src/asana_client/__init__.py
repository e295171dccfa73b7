"""Asana REST API client.

Callers declare the entities they need as :class:`Model` subclasses; the
client derives endpoint paths and ``opt_fields`` selections from those
declarations and validates responses back into them.

Exports:
    AsanaClient: Async HTTP client with bearer authentication.
    Model: Base class for caller-declared entities.
    ScopedRequest: Request builder nested under a parent entity.
    AsanaError, ConfigurationError, TransportError, DecodeError: Errors.
    API_VERSION: Asana REST API version.
"""

from .client import (
    API_VERSION,
    AsanaClient,
    AsanaError,
    ConfigurationError,
    DecodeError,
    ScopedRequest,
    TransportError,
)
from .models import Model

__version__ = "0.1.0"

__all__ = [
    "API_VERSION",
    "AsanaClient",
    "AsanaError",
    "ConfigurationError",
    "DecodeError",
    "Model",
    "ScopedRequest",
    "TransportError",
]
