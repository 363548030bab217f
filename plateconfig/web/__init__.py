"""Web layer — FastAPI app serving the configurator API."""
