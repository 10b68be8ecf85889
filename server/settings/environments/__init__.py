"""Per-environment overrides."""
