"""Request and response schemas for the HTTP tool surface."""
