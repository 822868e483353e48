"""
Image search aggregation across providers.
"""

from pressroom.search.aggregator import (
    ALL_PROVIDERS,
    ImageSearchAggregator,
    ProviderOutcome,
)

__all__ = [
    "ALL_PROVIDERS",
    "ImageSearchAggregator",
    "ProviderOutcome",
]
