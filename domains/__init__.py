"""Domain modules for the diet app reminder service."""
