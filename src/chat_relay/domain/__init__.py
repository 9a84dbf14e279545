"""Domain entities, error variants and service ports."""
