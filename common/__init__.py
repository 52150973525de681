"""Shared application helpers: logging and configuration."""
