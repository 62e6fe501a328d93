"""FastAPI service for floating and featured videos."""
