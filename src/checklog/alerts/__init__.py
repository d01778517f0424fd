"""Threshold and heartbeat evaluation."""
