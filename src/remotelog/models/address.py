"""Sender identity models.

Identifiers use the colon/at-sign string forms senders put on the wire:

* ``PackageId``  -> ``package_name:publisher_node``
* ``ProcessId``  -> ``process_name:package_name:publisher_node``
* ``Address``    -> ``node@process_name:package_name:publisher_node``

Every component ends up as a path segment under the storage drive, so
components are restricted to strings that cannot escape a directory.
"""

from __future__ import annotations

from typing import Annotated, Any, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, ValidationError, model_serializer, model_validator

from remotelog.exceptions import InvalidAddressError

_FORBIDDEN_CHARS = frozenset("@:/\\")


def validate_component(value: str) -> str:
    """Return *value* if it is usable as one identifier component."""
    if not value:
        raise InvalidAddressError("identifier component must be non-empty")
    if value in {".", ".."}:
        raise InvalidAddressError(f"identifier component {value!r} is reserved")
    for ch in value:
        if ch in _FORBIDDEN_CHARS or ch.isspace():
            raise InvalidAddressError(f"identifier component {value!r} contains {ch!r}")
    return value


Component = Annotated[str, AfterValidator(validate_component)]

_M = TypeVar("_M", bound="_StringModel")


class _StringModel(BaseModel):
    """Identifier model that accepts and serializes to its string form."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def parse(cls: type[_M], value: str) -> _M:
        """Parse the wire string form, raising :class:`InvalidAddressError`."""
        try:
            return cls.model_validate(value)
        except ValidationError as exc:
            detail = exc.errors()[0].get("msg", "invalid value") if exc.errors() else "invalid value"
            raise InvalidAddressError(f"invalid {cls.__name__} {value!r}: {detail}") from exc

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return cls._split(value)
        return value

    @classmethod
    def _split(cls, value: str) -> dict[str, str]:
        raise NotImplementedError

    @model_serializer
    def _to_string(self) -> str:
        return str(self)


class PackageId(_StringModel):
    package_name: Component
    publisher_node: Component

    @classmethod
    def _split(cls, value: str) -> dict[str, str]:
        parts = value.split(":")
        if len(parts) != 2:
            raise InvalidAddressError(f"package id {value!r} must look like 'package:publisher'")
        return {"package_name": parts[0], "publisher_node": parts[1]}

    def __str__(self) -> str:
        return f"{self.package_name}:{self.publisher_node}"


class ProcessId(_StringModel):
    process_name: Component
    package_name: Component
    publisher_node: Component

    @classmethod
    def _split(cls, value: str) -> dict[str, str]:
        parts = value.split(":")
        if len(parts) != 3:
            raise InvalidAddressError(f"process id {value!r} must look like 'process:package:publisher'")
        return {"process_name": parts[0], "package_name": parts[1], "publisher_node": parts[2]}

    @property
    def package_id(self) -> PackageId:
        return PackageId(package_name=self.package_name, publisher_node=self.publisher_node)

    def __str__(self) -> str:
        return f"{self.process_name}:{self.package_name}:{self.publisher_node}"


class Address(_StringModel):
    """Sender identity: origin node plus the process that sent the message."""

    node: Component
    process: ProcessId

    @classmethod
    def _split(cls, value: str) -> dict[str, Any]:
        node, sep, process = value.partition("@")
        if not sep:
            raise InvalidAddressError(f"address {value!r} must look like 'node@process:package:publisher'")
        return {"node": node, "process": process}

    @classmethod
    def build(cls, node: str, process: str, package: str, publisher: str) -> Address:
        return cls(
            node=node,
            process=ProcessId(process_name=process, package_name=package, publisher_node=publisher),
        )

    @property
    def package_id(self) -> PackageId:
        return self.process.package_id

    @property
    def process_name(self) -> str:
        return self.process.process_name

    def __str__(self) -> str:
        return f"{self.node}@{self.process}"
