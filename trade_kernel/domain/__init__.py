"""Pure domain value objects (clock, workflow definitions)."""
