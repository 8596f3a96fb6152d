"""Adapters to external systems: database, Gemini, mail."""
