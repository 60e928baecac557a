"""FastMCP sub-servers exposing the generation operations."""
