"""Domain models — value objects, entities and report records."""
