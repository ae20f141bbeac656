"""Adapters around the template engines and config encoders."""

from .serializers import SerializeError, SerializerRegistry
from .templating import RenderError, TemplateRegistry

__all__ = ["RenderError", "SerializeError", "SerializerRegistry", "TemplateRegistry"]
