"""Template engine adapters (Handlebars via pybars3, Liquid via python-liquid)."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol

from liquid import Environment as LiquidEnvironment
from pybars import Compiler

from ..models import TemplateEngine


class RenderError(RuntimeError):
    """Raised when a template cannot be rendered."""


class TemplateRenderer(Protocol):
    """Renders template source with variables and named partial sources."""

    def render(self, source: str, vars: Mapping[str, Any], partials: Mapping[str, str]) -> str:
        ...


class HandlebarsRenderer:
    def __init__(self, compiler: Compiler | None = None) -> None:
        self._compiler = compiler or Compiler()

    def render(self, source: str, vars: Mapping[str, Any], partials: Mapping[str, str]) -> str:
        try:
            compiled = {name: self._compiler.compile(text) for name, text in partials.items()}
            template = self._compiler.compile(source)
            return str(template(dict(vars), partials=compiled))
        except Exception as exc:
            raise RenderError(f"handlebars render failed: {exc}") from exc


class LiquidRenderer:
    def __init__(self, environment: LiquidEnvironment | None = None) -> None:
        self._env = environment or LiquidEnvironment()

    def render(self, source: str, vars: Mapping[str, Any], partials: Mapping[str, str]) -> str:
        if partials:
            raise RenderError("liquid templates do not take partials")
        try:
            return self._env.from_string(source).render(**dict(vars))
        except Exception as exc:
            raise RenderError(f"liquid render failed: {exc}") from exc


class TemplateRegistry:
    """Engine name -> renderer lookup used by the executor."""

    def __init__(self, renderers: Optional[Mapping[TemplateEngine, TemplateRenderer]] = None) -> None:
        self._renderers: Dict[TemplateEngine, TemplateRenderer] = {
            TemplateEngine.HANDLEBARS: HandlebarsRenderer(),
            TemplateEngine.LIQUID: LiquidRenderer(),
        }
        if renderers:
            self._renderers.update(renderers)

    def render(
        self,
        engine: TemplateEngine,
        source: str,
        vars: Mapping[str, Any],
        partials: Optional[Mapping[str, str]] = None,
    ) -> str:
        renderer = self._renderers.get(engine)
        if renderer is None:
            raise RenderError(f"no renderer registered for engine '{engine.value}'")
        return renderer.render(source, vars, partials or {})


__all__ = [
    "HandlebarsRenderer",
    "LiquidRenderer",
    "RenderError",
    "TemplateRegistry",
    "TemplateRenderer",
]
