"""Core types shared across the tracker: enums, models, config, errors."""
