"""Logging, environment and artifact helpers."""
