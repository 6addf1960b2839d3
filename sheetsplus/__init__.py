"""Sheets+ ─ table extraction and editing service."""

__all__: list[str] = []
