"""Structured config encoders: YAML (PyYAML), TOML (tomli-w) and JSON."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Protocol

import tomli_w
import yaml

from ..models import ConfigFormat


class SerializeError(RuntimeError):
    """Raised when values cannot be encoded in the requested format."""


class Serializer(Protocol):
    def serialize(self, values: Mapping[str, Any]) -> str:
        ...


class YamlSerializer:
    def serialize(self, values: Mapping[str, Any]) -> str:
        return yaml.safe_dump(
            dict(values), sort_keys=False, default_flow_style=False, allow_unicode=True
        )


class TomlSerializer:
    def serialize(self, values: Mapping[str, Any]) -> str:
        return tomli_w.dumps(dict(values))


class JsonSerializer:
    def serialize(self, values: Mapping[str, Any]) -> str:
        return json.dumps(values, indent=2, ensure_ascii=False) + "\n"


class SerializerRegistry:
    """Format -> serializer lookup; prepends an optional verbatim header."""

    def __init__(self, serializers: Optional[Mapping[ConfigFormat, Serializer]] = None) -> None:
        self._serializers: Dict[ConfigFormat, Serializer] = {
            ConfigFormat.YAML: YamlSerializer(),
            ConfigFormat.TOML: TomlSerializer(),
            ConfigFormat.JSON: JsonSerializer(),
        }
        if serializers:
            self._serializers.update(serializers)

    def serialize(
        self, fmt: ConfigFormat, values: Mapping[str, Any], header: Optional[str] = None
    ) -> str:
        serializer = self._serializers.get(fmt)
        if serializer is None:
            raise SerializeError(f"no serializer registered for format '{fmt.value}'")
        try:
            body = serializer.serialize(values)
        except Exception as exc:
            raise SerializeError(f"{fmt.value} serialization failed: {exc}") from exc
        if not header:
            return body
        if not header.endswith("\n"):
            header += "\n"
        return header + body


__all__ = [
    "JsonSerializer",
    "SerializeError",
    "Serializer",
    "SerializerRegistry",
    "TomlSerializer",
    "YamlSerializer",
]
