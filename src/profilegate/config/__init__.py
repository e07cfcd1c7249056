"""Configuration: TOML discovery, frozen section models, settings, logging."""
