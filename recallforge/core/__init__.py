"""Core services: configuration, logging, errors and the clock."""
