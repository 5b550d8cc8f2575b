"""Model catalog: a small FastAPI + MongoDB service for models and purchases."""
