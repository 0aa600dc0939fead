"""Core infrastructure: logging, configuration, and the semantic graph model."""
