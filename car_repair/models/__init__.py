"""Domain value objects and API schemas."""
