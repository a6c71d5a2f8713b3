"""Domain layer: entities, pure dashboard logic and service ports."""
