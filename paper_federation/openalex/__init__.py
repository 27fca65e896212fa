"""OpenAlex Works API integration."""

from .adapters import OpenAlexAdapter, normalize_work, reconstruct_abstract
from .client import OpenAlexClient

__all__ = ["OpenAlexAdapter", "OpenAlexClient", "normalize_work", "reconstruct_abstract"]
