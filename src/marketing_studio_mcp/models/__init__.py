"""Pydantic models for requests, artifacts and batch output."""
