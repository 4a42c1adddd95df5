"""Views: render collaborators handed a view name and a payload."""

from .render import JsonRenderer, Renderer

__all__ = ["JsonRenderer", "Renderer"]
