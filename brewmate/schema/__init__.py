"""Pydantic schemas for profiles, diary entries, predictions and insights."""
