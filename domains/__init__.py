"""Dirmon domains."""
