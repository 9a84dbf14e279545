"""HTTP presentation layer (FastAPI routes and request/response schemas)."""
