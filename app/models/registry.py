"""
Field registry – the declarative table of encrypted fields per record type.

Each record type lists its encrypted fields once; the registry is immutable
afterwards and is the only place the column guard looks when a caller asks to
search by a field name.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping


@dataclass(frozen=True)
class FieldSpec:
    name: str
    ciphertext_column: str
    iv_column: str
    digest_column: str | None = None
    unique: bool = False
    required: bool = False

    @property
    def searchable(self) -> bool:
        return self.digest_column is not None

    @property
    def columns(self) -> tuple[str, ...]:
        cols = (self.ciphertext_column, self.iv_column)
        return cols + (self.digest_column,) if self.digest_column else cols

    @classmethod
    def encrypted(
        cls, name: str, *, searchable: bool = False, unique: bool = False, required: bool = False
    ) -> FieldSpec:
        """Spec following the column naming convention <name>_encrypted / _encrypted_iv / _bidx."""
        if unique and not searchable:
            raise ValueError("uniqueness is enforced through the blind index")
        return cls(
            name=name,
            ciphertext_column=f"{name}_encrypted",
            iv_column=f"{name}_encrypted_iv",
            digest_column=f"{name}_bidx" if searchable else None,
            unique=unique,
            required=required,
        )


class FieldRegistry:
    """Read-only mapping of logical field name -> FieldSpec."""

    def __init__(self, *specs: FieldSpec):
        fields: dict[str, FieldSpec] = {}
        for spec in specs:
            if spec.name in fields:
                raise ValueError(f"Duplicate encrypted field: {spec.name}")
            fields[spec.name] = spec
        self._fields: Mapping[str, FieldSpec] = MappingProxyType(fields)

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._fields

    def get(self, name: object) -> FieldSpec | None:
        if not isinstance(name, str):
            return None
        return self._fields.get(name)

    def searchable(self) -> list[FieldSpec]:
        return [spec for spec in self._fields.values() if spec.searchable]

    def check_columns(self, available: set[str], owner: str) -> None:
        """Fail at class declaration time if a spec names a column the table lacks."""
        for spec in self._fields.values():
            missing = [c for c in spec.columns if c not in available]
            if missing:
                raise ValueError(
                    f"{owner}: encrypted field '{spec.name}' references missing columns {missing}"
                )
