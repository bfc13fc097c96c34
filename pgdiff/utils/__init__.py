"""Utility helpers for pgdiff."""
