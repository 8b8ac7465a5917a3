"""Pydantic schemas for the Community Guard API."""
