"""Domain layer: entities, interfaces and services."""
