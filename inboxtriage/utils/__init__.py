"""Shared utilities: logging, configuration, secrets, input sanitization."""
