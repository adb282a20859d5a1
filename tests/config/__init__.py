"""
Configuration Tests

Tests for the YAML loader, ${VAR} expansion, FLOWSCRIBE_* overrides,
secrets from the environment and the settings models.
"""
