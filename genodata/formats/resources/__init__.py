"""Bundled data format descriptions."""
