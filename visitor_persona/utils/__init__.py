"""Shared constants, configuration and helpers."""
