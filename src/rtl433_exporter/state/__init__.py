"""State/store layer.

This package is the single source of truth for how validated samples from
the write path are merged into per-area state and counters, and how the
scrape path reads them back.
"""
