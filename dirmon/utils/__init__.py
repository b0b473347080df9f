"""Configuration and shared helpers."""
