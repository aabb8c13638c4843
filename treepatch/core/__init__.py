"""GUI-agnostic core: events, models, the registry and the reconciliation engine."""
