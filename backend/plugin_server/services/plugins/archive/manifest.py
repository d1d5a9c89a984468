"""
Plugin Archive Manifest
Reads META-INF/MANIFEST.MF from an uploaded JAR and derives the plugin name
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from ....models.archive_models import MANIFEST_MF
from ....models.plugin_models import validate_plugin_name
from ..exceptions import PluginValidationError
from .zip_format import DECODE_ERRORS, ArchiveSource, open_archive, physical_entries

logger = logging.getLogger(__name__)

PLUGIN_NAME_ATTRIBUTE = "plugin-name"
PLUGIN_PROVIDER_FACTORY_CLASS_NAME_ATTRIBUTE = "plugin-provider-factory-className"


def parse_manifest(text: str) -> Dict[str, str]:
    """
    Parse the main section of a JAR manifest.

    Attribute names are case-insensitive and returned lower-cased. Lines
    starting with a single space continue the previous value. Parsing stops
    at the first blank line, which ends the main section.

    Raises:
        PluginValidationError: A line is neither "Name: value" nor a continuation.
    """
    attributes: Dict[str, str] = {}
    last: Optional[str] = None

    for number, line in enumerate(text.splitlines(), start=1):
        if not line:
            if attributes:
                break
            continue
        if line.startswith(" "):
            if last is None:
                raise PluginValidationError(f"Manifest line {number}: continuation without attribute")
            attributes[last] += line[1:]
            continue

        name, separator, value = line.partition(":")
        if not separator or not name.strip():
            raise PluginValidationError(f"Manifest line {number}: invalid attribute {line!r}")
        last = name.strip().lower()
        attributes[last] = value[1:] if value.startswith(" ") else value

    return attributes


@dataclass(frozen=True)
class PluginArchiveManifest:
    """The main attributes of a plugin JAR manifest"""

    attributes: Dict[str, str] = field(default_factory=dict)

    def attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name.lower())

    def required_attribute(self, name: str) -> str:
        value = self.attribute(name)
        if not value or not value.strip():
            raise PluginValidationError(f"Manifest missing required attribute {name!r}", field=name)
        return value.strip()

    @property
    def plugin_name(self) -> str:
        return validate_plugin_name(self.required_attribute(PLUGIN_NAME_ATTRIBUTE), label=PLUGIN_NAME_ATTRIBUTE)

    @property
    def provider_factory_class_name(self) -> Optional[str]:
        return self.attribute(PLUGIN_PROVIDER_FACTORY_CLASS_NAME_ATTRIBUTE)

    @classmethod
    def from_text(cls, text: str) -> "PluginArchiveManifest":
        return cls(attributes=parse_manifest(text))

    @classmethod
    def from_archive(cls, archive: ArchiveSource) -> "PluginArchiveManifest":
        """
        Read the manifest of an uploaded archive.

        Unlike stored archives, an upload that cannot be decoded is the
        client's fault and is reported as a validation error.

        Raises:
            PluginValidationError: Not a ZIP container, or no manifest entry.
        """
        try:
            with open_archive(archive) as zip_file:
                for info in physical_entries(zip_file):
                    if info.filename.upper() == MANIFEST_MF.relative.upper():
                        content = zip_file.read(info)
                        break
                else:
                    raise PluginValidationError(f"Missing {MANIFEST_MF}", field="archive")
        except DECODE_ERRORS as e:
            logger.warning(f"Uploaded archive is not a valid JAR: {e}")
            raise PluginValidationError(f"Invalid archive: {e}", field="archive") from e

        return cls.from_text(content.decode("utf-8", errors="replace"))
