"""HTTP tool surface for the analytics engine."""
