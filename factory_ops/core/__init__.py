"""Cross-cutting concerns: settings, logging, token verification and FastAPI dependencies."""
