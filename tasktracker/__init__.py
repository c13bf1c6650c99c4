"""Task tracking backend with audit history and JWT authentication."""

__version__ = "1.0.0"
