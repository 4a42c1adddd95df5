"""MVC request-dispatch-to-persistence pipeline for User records."""

__version__ = "0.1.0"
