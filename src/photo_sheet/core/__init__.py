"""Core units, errors and data model shared by every layer."""
