"""Video catalog: access layer, blob sync and routes."""
