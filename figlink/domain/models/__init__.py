"""Domain Models: value objects, error taxonomy, metrics and health verdicts."""
