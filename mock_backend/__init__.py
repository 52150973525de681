"""In-memory folder backend used for local development and tests."""
