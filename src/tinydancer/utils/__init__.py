"""Helpers shared by the collection loader."""
