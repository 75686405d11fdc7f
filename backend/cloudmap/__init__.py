"""CloudMap backend: AWS architecture generation and the Jarvis assistant."""

__version__ = "0.5.0"
