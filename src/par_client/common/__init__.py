"""Shared helpers (logging, HTTP) used across transport and repository modules."""
