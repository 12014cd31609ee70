"""Court booking allocation service."""
