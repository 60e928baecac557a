"""Prompt templates for marketing generation."""
