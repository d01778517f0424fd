"""Incremental reading, matching and position tracking."""
