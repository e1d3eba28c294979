"""Feature Toggle service: evaluation core, catalog providers and HTTP API."""
