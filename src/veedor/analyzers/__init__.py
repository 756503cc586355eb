"""Analyzers — aggregation selectors and duplicate detection."""
