"""Render a repository as annotated markdown documents and read them back."""

__version__ = "0.1.0"
