"""loginguard: brute-force login lockout service."""

__version__ = "0.1.0"
