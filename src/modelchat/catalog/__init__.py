"""Model catalog module for modelchat.

Provides the fixed list of addressable models and provider status reporting.
"""

from .models import Model, Provider, ProviderStatus
from .registry import DEFAULT_MODEL, DEFAULT_MODELS, ModelCatalog, default_catalog

__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_MODELS",
    "Model",
    "ModelCatalog",
    "Provider",
    "ProviderStatus",
    "default_catalog",
]
