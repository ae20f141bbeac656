"""Directive argument shapes and per-directive record validation.

Every directive call arrives either as a bare primary value (``file("a.txt")``)
or as a record with positional and named fields
(``file("a.txt", ".a.txt", type="copy")``). Records are validated against a
pydantic model per directive kind; validation failures become
``CompilationError`` values naming the directive and the offending field.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, Callable, ClassVar, Dict, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from ..models import CaptureMode, ExitPolicy, LinkType
from .errors import CompilationError

_SCALARS = (bool, int, float, str)


@dataclass(frozen=True)
class DirectiveArg:
    """Tagged argument for a directive call."""

    positional: Tuple[Any, ...] = ()
    named: Dict[str, Any] = field(default_factory=dict)
    bare: bool = False

    @classmethod
    def primary(cls, value: Any) -> "DirectiveArg":
        """Argument that supplies only the directive's primary field."""
        return cls(positional=(value,), bare=True)

    @classmethod
    def record(cls, *positional: Any, **named: Any) -> "DirectiveArg":
        """Argument with positional and named fields."""
        return cls(positional=tuple(positional), named=dict(named))

    def with_named(self, **overrides: Any) -> "DirectiveArg":
        named = dict(self.named)
        named.update(overrides)
        return DirectiveArg(positional=self.positional, named=named)

    def pop(self, key: str) -> Tuple[Any, "DirectiveArg"]:
        """Return the named value for ``key`` and the argument without it."""
        named = dict(self.named)
        value = named.pop(key, None)
        return value, DirectiveArg(positional=self.positional, named=named, bare=self.bare)


def plain_value(value: Any, where: str = "value") -> Any:
    """Return a detached copy of ``value`` if it only contains plain data."""
    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, Mapping):
        result: Dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{where} has non-string key {key!r}")
            result[key] = plain_value(item, f"{where}.{key}")
        return result
    if isinstance(value, (list, tuple)):
        return [plain_value(item, f"{where}[{index}]") for index, item in enumerate(value)]
    raise ValueError(
        f"{where} has unsupported type {type(value).__name__}; "
        "only None, bool, int, float, str, lists and tables are allowed"
    )


def _plain_mapping(value: Any) -> Dict[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError("expected a table of values")
    return plain_value(value)


def _path_str(value: Any) -> Any:
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    return value


def _patterns(value: Any) -> Any:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return value


def _exit_policy(value: Any) -> Any:
    if isinstance(value, str) and value.strip().lower() == "error":
        return ExitPolicy.FAIL
    return value


def _capture_mode(value: Any) -> Any:
    if isinstance(value, bool):
        return CaptureMode.INHERIT if value else CaptureMode.NULL
    if isinstance(value, str) and value.strip().lower() == "discard":
        return CaptureMode.NULL
    return value


PathStr = Annotated[str, BeforeValidator(_path_str)]
PlainMapping = Annotated[Dict[str, Any], BeforeValidator(_plain_mapping)]
Patterns = Annotated[Tuple[str, ...], BeforeValidator(_patterns)]
Policy = Annotated[ExitPolicy, BeforeValidator(_exit_policy)]
Capture = Annotated[Optional[CaptureMode], BeforeValidator(_capture_mode)]


class DirectiveRecord(BaseModel):
    """Base class for directive records; ``POSITIONAL`` lists positional fields in order."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    POSITIONAL: ClassVar[Tuple[str, ...]] = ()


class FileArgs(DirectiveRecord):
    POSITIONAL: ClassVar[Tuple[str, ...]] = ("src", "dest")

    src: PathStr
    dest: Optional[PathStr] = None
    link_type: LinkType = Field(default=LinkType.LINK, alias="type")
    optional: bool = False


class TreeArgs(DirectiveRecord):
    POSITIONAL: ClassVar[Tuple[str, ...]] = ("src", "dest")

    src: PathStr
    dest: Optional[PathStr] = None
    link_type: LinkType = Field(default=LinkType.LINK, alias="type")
    globs: Patterns = ()
    ignore: Patterns = ()
    optional: bool = False


class HandlebarsArgs(DirectiveRecord):
    POSITIONAL: ClassVar[Tuple[str, ...]] = ("src", "dest")

    src: PathStr
    dest: PathStr
    vars: PlainMapping
    partials: Dict[str, PathStr] = Field(default_factory=dict)
    optional: bool = False


class LiquidArgs(DirectiveRecord):
    POSITIONAL: ClassVar[Tuple[str, ...]] = ("src", "dest")

    src: PathStr
    dest: PathStr
    vars: PlainMapping
    optional: bool = False


class DestArgs(DirectiveRecord):
    """Shared by ``empty`` and ``mkdir``."""

    POSITIONAL: ClassVar[Tuple[str, ...]] = ("dest",)

    dest: PathStr


class StrArgs(DirectiveRecord):
    POSITIONAL: ClassVar[Tuple[str, ...]] = ("dest", "contents")

    dest: PathStr
    contents: str


class HeaderConfigArgs(DirectiveRecord):
    """``yaml`` and ``toml`` accept a verbatim header."""

    POSITIONAL: ClassVar[Tuple[str, ...]] = ("dest", "values")

    dest: PathStr
    values: PlainMapping
    header: Optional[str] = None


class JsonArgs(DirectiveRecord):
    POSITIONAL: ClassVar[Tuple[str, ...]] = ("dest", "values")

    dest: PathStr
    values: PlainMapping


class CmdArgs(DirectiveRecord):
    POSITIONAL: ClassVar[Tuple[str, ...]] = ("command",)

    command: str
    start: Optional[PathStr] = None
    shell: Optional[str] = None
    stdout: Capture = None
    stderr: Capture = None
    quiet: bool = False
    clean_env: bool = False
    env: Dict[str, str] = Field(default_factory=dict)
    nonzero_exit: Policy = ExitPolicy.FAIL

    def capture_modes(self) -> Tuple[CaptureMode, CaptureMode]:
        fallback = CaptureMode.NULL if self.quiet else CaptureMode.INHERIT
        return (self.stdout or fallback, self.stderr or fallback)


class FnArgs(DirectiveRecord):
    POSITIONAL: ClassVar[Tuple[str, ...]] = ("callback",)

    callback: Callable[..., Any]
    error_exit: Policy = ExitPolicy.FAIL


R = TypeVar("R", bound=DirectiveRecord)


def parse_record(kind: str, model: Type[R], arg: DirectiveArg, *, index: int) -> R:
    """Validate ``arg`` against ``model`` or raise ``CompilationError``."""
    names = model.POSITIONAL
    if len(arg.positional) > len(names):
        raise CompilationError(
            f"expected at most {len(names)} positional value(s), got {len(arg.positional)}",
            directive=kind,
            index=index,
        )

    data: Dict[str, Any] = dict(zip(names, arg.positional))
    for key, value in arg.named.items():
        if key in data:
            raise CompilationError(
                f"field '{key}' was given both positionally and by name",
                directive=kind,
                index=index,
                field=key,
            )
        data[key] = value

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise _from_validation_error(kind, index, exc) from exc


def _from_validation_error(kind: str, index: int, exc: ValidationError) -> CompilationError:
    error = exc.errors()[0]
    loc = error.get("loc") or ()
    field_name = str(loc[0]) if loc else None
    label = ".".join(str(part) for part in loc) or "argument"
    error_type = error.get("type", "")
    if error_type == "missing":
        message = f"{kind} {field_name} was not provided"
    elif error_type == "extra_forbidden":
        message = f"unknown field '{label}'"
    else:
        detail = str(error.get("msg", "invalid value"))
        message = f"invalid value for '{label}': {detail}"
    return CompilationError(message, directive=kind, index=index, field=field_name)


__all__ = [
    "CmdArgs",
    "DestArgs",
    "DirectiveArg",
    "DirectiveRecord",
    "FileArgs",
    "FnArgs",
    "HandlebarsArgs",
    "HeaderConfigArgs",
    "JsonArgs",
    "LiquidArgs",
    "StrArgs",
    "TreeArgs",
    "parse_record",
    "plain_value",
]
