"""Configuration, exceptions, enums and the advisory lock layer."""
