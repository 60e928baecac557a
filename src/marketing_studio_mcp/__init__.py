"""Marketing Studio MCP server — resilient Gemini marketing-content generation."""

__version__ = "0.1.0"
