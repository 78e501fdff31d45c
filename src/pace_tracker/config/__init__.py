"""Configuration paths and user-facing messages."""
