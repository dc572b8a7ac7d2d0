"""Context aggregation across the user's connected sources."""

from .aggregator import AggregatedContext, ContextAggregator

__all__ = ["AggregatedContext", "ContextAggregator"]
