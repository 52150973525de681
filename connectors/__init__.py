"""Connectors to the folder backend REST API."""
