"""Photo import service."""
