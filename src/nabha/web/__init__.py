"""Remote API (FastAPI)."""
