"""Chart aggregation, normalization and AI insight services."""
