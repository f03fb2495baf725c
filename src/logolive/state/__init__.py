"""State layer.

This package is the single source of truth for which logo states were
observed and in what order: change detection decides what gets recorded,
the history log records it.
"""
