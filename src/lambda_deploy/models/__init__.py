"""Pydantic models for deployment inputs and results."""
