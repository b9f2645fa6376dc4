"""Chat service: conversation sessions in front of a hosted completion API."""

__version__ = "0.1.0"
