"""Pydantic data models shared across the API and core."""
