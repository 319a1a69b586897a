"""Snapshot diffing and change reports."""
