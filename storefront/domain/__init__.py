"""Domain layer: storage contract, value objects and errors."""
