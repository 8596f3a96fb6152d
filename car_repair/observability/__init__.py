"""Logging, correlation ids and HTTP observability middleware."""
