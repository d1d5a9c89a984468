"""
Archive Entry Models
Names, metadata records and listings for the entries inside a plugin archive
"""

import functools
from datetime import datetime, timezone
from typing import Any, Iterator, Optional, Tuple

from pydantic import BaseModel, Field, RootModel, field_validator
from pydantic_core import core_schema

from ..services.plugins.exceptions import PluginValidationError

SEPARATOR = "/"
MANIFEST_MF_STRING = "/META-INF/MANIFEST.MF"

MIN_LENGTH = 1
MAX_LENGTH = 255


def _is_manifest(text: str) -> bool:
    return text.upper() == MANIFEST_MF_STRING


@functools.total_ordering
class EntryName:
    """
    The path of a file or directory inside a JAR/ZIP archive.

    Names always start with "/". Equality and ordering are case-sensitive with
    one exception: "/META-INF/MANIFEST.MF" in any letter case is the shared
    MANIFEST_MF instance, which sorts before every other name.

    Example:
        >>> EntryName("/meta-inf/Manifest.mf") is MANIFEST_MF
        True
        >>> sorted([EntryName("/b"), MANIFEST_MF, EntryName("/a")])
        [EntryName('/META-INF/MANIFEST.MF'), EntryName('/a'), EntryName('/b')]
    """

    __slots__ = ("_value",)

    _manifest: Optional["EntryName"] = None

    def __new__(cls, value: Any) -> "EntryName":
        if isinstance(value, EntryName):
            return value
        if not isinstance(value, str) or not value:
            raise PluginValidationError("Missing entry name", field="name")
        if not value.startswith(SEPARATOR):
            raise PluginValidationError(
                f"Entry name must start with '{SEPARATOR}' but got {value!r}",
                field="name",
            )

        if _is_manifest(value) and cls._manifest is not None:
            return cls._manifest

        name = super().__new__(cls)
        object.__setattr__(name, "_value", value)
        return name

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self):
        return (EntryName, (self._value,))

    def __copy__(self) -> "EntryName":
        return self

    def __deepcopy__(self, memo) -> "EntryName":
        return self

    @property
    def value(self) -> str:
        return self._value

    @property
    def relative(self) -> str:
        """The name without its leading separator, as stored inside the archive."""
        return self._value[len(SEPARATOR) :]

    @property
    def is_directory(self) -> bool:
        return self._value.endswith(SEPARATOR)

    @property
    def is_manifest(self) -> bool:
        return _is_manifest(self._value)

    def check_length(self, label: str = "name") -> "EntryName":
        """
        Verify the name length is within MIN_LENGTH..MAX_LENGTH.

        Length is not checked on construction; callers that persist or echo
        names check it with their own label.
        """
        length = len(self._value)
        if length < MIN_LENGTH or length > MAX_LENGTH:
            raise PluginValidationError(
                f"Length {length} of {label!r} not between {MIN_LENGTH}..{MAX_LENGTH}",
                field=label,
            )
        return self

    def compare_to(self, other: "EntryName") -> int:
        manifest = self.is_manifest
        other_manifest = other.is_manifest

        if manifest or other_manifest:
            if manifest and other_manifest:
                return 0
            return -1 if manifest else 1

        if self._value == other._value:
            return 0
        return -1 if self._value < other._value else 1

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, EntryName):
            return NotImplemented
        return self.compare_to(other) == 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, EntryName):
            return NotImplemented
        return self.compare_to(other) < 0

    def __hash__(self) -> int:
        return hash(MANIFEST_MF_STRING if self.is_manifest else self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"EntryName({self._value!r})"

    @classmethod
    def _from_text(cls, text: str) -> "EntryName":
        try:
            return cls(text)
        except PluginValidationError as e:
            raise ValueError(e.message)

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        from_text = core_schema.chain_schema(
            [
                core_schema.str_schema(),
                core_schema.no_info_plain_validator_function(cls._from_text),
            ]
        )
        return core_schema.json_or_python_schema(
            json_schema=from_text,
            python_schema=core_schema.union_schema([core_schema.is_instance_schema(cls), from_text]),
            serialization=core_schema.plain_serializer_function_ser_schema(lambda name: name.value),
        )


MANIFEST_MF = EntryName(MANIFEST_MF_STRING)
EntryName._manifest = MANIFEST_MF


class EntryInfo(BaseModel):
    """Metadata for one file or directory entry within an archive"""

    name: EntryName
    size: Optional[int] = Field(None, ge=0, description="Uncompressed size in bytes")
    compressed_size: Optional[int] = Field(None, ge=0, alias="compressedSize")
    method: Optional[int] = Field(None, ge=0, description="ZIP compression method")
    crc: Optional[int] = None
    create: Optional[datetime] = Field(None, description="Creation time, UTC")
    last_modified: Optional[datetime] = Field(None, alias="lastModified")

    class Config:
        frozen = True
        populate_by_name = True
        extra = "forbid"

    @field_validator("create", "last_modified")
    @classmethod
    def normalize_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Timestamps are held as naive UTC values."""
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @property
    def is_directory(self) -> bool:
        return self.name.is_directory

    def to_json_dict(self) -> dict:
        """Structured form with absent fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EntryList(RootModel[Tuple[EntryInfo, ...]]):
    """
    Immutable, ordered list of EntryInfo.

    Order is exactly the order supplied, which for listings is the physical
    order of entries in the archive. EntryName ordering is never applied here.
    """

    root: Tuple[EntryInfo, ...] = ()

    class Config:
        frozen = True

    def __iter__(self) -> Iterator[EntryInfo]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> EntryInfo:
        return self.root[index]

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)

    @classmethod
    def from_json(cls, text: str) -> "EntryList":
        return cls.model_validate_json(text)


__all__ = [
    "SEPARATOR",
    "MANIFEST_MF_STRING",
    "MANIFEST_MF",
    "MIN_LENGTH",
    "MAX_LENGTH",
    "EntryName",
    "EntryInfo",
    "EntryList",
]
