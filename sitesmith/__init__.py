"""Describe a website in plain language, get back a complete HTML document."""

__version__ = "0.1.0"
