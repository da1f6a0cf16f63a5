"""MovieFeaster FastAPI application package."""
