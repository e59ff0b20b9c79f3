"""Application layer: configuration, auth, controller and HTTP API."""
