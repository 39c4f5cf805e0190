from ux_review.providers.base import ProviderAdapter
from ux_review.providers.registry import PROVIDERS, list_providers, route

__all__ = ["PROVIDERS", "ProviderAdapter", "list_providers", "route"]
