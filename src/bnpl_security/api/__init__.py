"""HTTP surface: FastAPI app factory, middleware and SCA routes."""
