"""
Dirmon

Watches a single directory and keeps every observed version of each changed
file in a shadow directory, catching files that live only for milliseconds.
"""

__version__ = "1.0.0"
