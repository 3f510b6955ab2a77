"""Bridge helpers."""
