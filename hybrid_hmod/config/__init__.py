"""Build configuration."""
