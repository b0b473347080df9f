"""Data models shared across the capture pipeline."""
