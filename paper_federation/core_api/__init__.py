"""CORE API v3 integration."""

from .adapters import CoreAdapter, normalize_work
from .client import CoreClient

__all__ = ["CoreAdapter", "CoreClient", "normalize_work"]
