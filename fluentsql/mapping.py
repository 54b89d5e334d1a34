"""Explicit row decoders for ``select_as`` and ``schema_type``.

Rows are only converted into a structured type when that type has been
registered with a :class:`TypeRegistry`. Nothing is looked up by reflection at
query time: the decoder is chosen when the type is registered.
"""

import dataclasses
from collections.abc import Mapping
from typing import Any, Callable, Optional, cast, overload

import msgspec

from fluentsql.exceptions import MappingError
from fluentsql.typing import MappingTarget, ModelDTOT
from fluentsql.utils.logging import get_logger

__all__ = ("RowDecoder", "TypeRegistry", "default_decoder")

logger = get_logger("mapping")

RowDecoder = Callable[["dict[str, Any]"], Any]


def _is_msgspec_struct(target: Any) -> bool:
    return isinstance(target, type) and issubclass(target, msgspec.Struct)


def default_decoder(target: "type[ModelDTOT]") -> "Callable[[dict[str, Any]], ModelDTOT]":
    """Build the decoder used when a type is registered without one.

    msgspec Structs and dataclasses are converted with :func:`msgspec.convert`
    in lax mode, so numeric strings such as ``"1"`` are coerced to the
    annotated field types. Any other class is instantiated with
    the row as keyword arguments.

    Args:
        target: The class rows are decoded into.

    Returns:
        A callable turning one row into an instance of ``target``.
    """
    if _is_msgspec_struct(target) or dataclasses.is_dataclass(target):

        def _convert(row: "dict[str, Any]") -> "ModelDTOT":
            return msgspec.convert(row, type=target, strict=False)

        return _convert

    def _construct(row: "dict[str, Any]") -> "ModelDTOT":
        return target(**row)

    return _construct


class TypeRegistry:
    """Registry of result types a query may be mapped to.

    Example:
        >>> registry = TypeRegistry()
        >>> registry.register(User)
        >>> registry.register(dict, decoder=dict, name="row")
        >>> registry.decode("User", {"id": 1, "name": "Ada"})
        User(id=1, name='Ada')
    """

    __slots__ = ("_decoders", "_names")

    def __init__(self) -> None:
        self._decoders: "dict[Any, RowDecoder]" = {}
        self._names: "dict[str, Any]" = {}

    def __contains__(self, target: object) -> bool:
        try:
            self.resolve(cast("MappingTarget", target))
        except MappingError:
            return False
        return True

    def __len__(self) -> int:
        return len(self._decoders)

    def register(
        self, target: "type[Any]", decoder: "Optional[RowDecoder]" = None, name: Optional[str] = None
    ) -> "type[Any]":
        """Register ``target`` as a mapping destination.

        The type is addressable by itself, by its ``__name__`` and by ``name``
        when given. Registering the same type again replaces its decoder.

        Args:
            target: The result type.
            decoder: Callable turning one row mapping into a ``target`` value.
                Defaults to :func:`default_decoder`.
            name: Additional string name for the type.

        Returns:
            ``target``, so the method can be used as a class decorator.
        """
        self._decoders[target] = decoder or default_decoder(target)
        self._names[getattr(target, "__name__", str(target))] = target
        if name:
            self._names[name] = target
        logger.debug("Registered result type %s", getattr(target, "__name__", target))
        return target

    def unregister(self, target: "MappingTarget") -> None:
        resolved = self.resolve(target)
        del self._decoders[resolved]
        self._names = {key: value for key, value in self._names.items() if value is not resolved}

    def resolve(self, target: "MappingTarget") -> Any:
        """Return the registered type for a type or a registered name.

        Raises:
            MappingError: If the target is not registered.
        """
        resolved = self._names.get(target) if isinstance(target, str) else target
        if resolved is None or resolved not in self._decoders:
            msg = f"Result type {target!r} is not registered with the type registry"
            raise MappingError(msg)
        return resolved

    @overload
    def decode(self, target: "type[ModelDTOT]", row: "Mapping[str, Any]") -> "ModelDTOT": ...

    @overload
    def decode(self, target: str, row: "Mapping[str, Any]") -> Any: ...

    def decode(self, target: "MappingTarget", row: "Mapping[str, Any]") -> Any:
        """Decode one row into the registered type.

        Raises:
            MappingError: If the target is unknown or its decoder fails.
        """
        resolved = self.resolve(target)
        try:
            return self._decoders[resolved](dict(row))
        except (msgspec.ValidationError, TypeError, ValueError, KeyError) as e:
            name = getattr(resolved, "__name__", resolved)
            msg = f"Could not decode row into {name}: {e}"
            raise MappingError(msg) from e

    def decode_many(self, target: "MappingTarget", rows: "list[dict[str, Any]]") -> "list[Any]":
        return [self.decode(target, row) for row in rows]
