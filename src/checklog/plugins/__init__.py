"""Classifier protocol and registry."""
