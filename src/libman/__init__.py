"""libman: catalog record repository with an HTTP API."""
