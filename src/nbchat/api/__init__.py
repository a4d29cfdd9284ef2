"""HTTP host: FastAPI routes and dependencies."""
