"""Core domain: entities, value objects, protocols and exceptions."""
