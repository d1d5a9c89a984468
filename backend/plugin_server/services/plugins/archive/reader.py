"""
Archive Reader
Lists the entries of a plugin JAR/ZIP archive without unpacking it
"""

import logging
import zipfile
from typing import Optional

from ....models.archive_models import SEPARATOR, EntryInfo, EntryList, EntryName
from ..exceptions import ArchiveDecodeError
from .zip_format import (
    DECODE_ERRORS,
    ArchiveSource,
    dos_timestamp,
    extra_timestamps,
    open_archive,
    physical_entries,
    read_local_extra,
)

logger = logging.getLogger(__name__)


def entry_name(archive_name: str) -> EntryName:
    """Archive-internal names are relative; entry names carry a leading separator."""
    if not archive_name.startswith(SEPARATOR):
        archive_name = SEPARATOR + archive_name
    return EntryName(archive_name)


def _known(value: Optional[int]) -> Optional[int]:
    """Negative values are the "unknown" marker and become absent."""
    if value is None or value < 0:
        return None
    return value


def entry_info(zip_file: zipfile.ZipFile, info: zipfile.ZipInfo) -> EntryInfo:
    """Build the EntryInfo for one archive entry."""
    times = extra_timestamps(info.extra)
    times.update(extra_timestamps(read_local_extra(zip_file, info)))

    return EntryInfo(
        name=entry_name(info.filename),
        size=_known(info.file_size),
        compressed_size=_known(info.compress_size),
        method=_known(info.compress_type),
        crc=_known(info.CRC),
        create=times.get("created"),
        last_modified=times.get("modified") or dos_timestamp(info),
    )


def read_entry_list(archive: ArchiveSource, plugin_name: Optional[str] = None) -> EntryList:
    """
    List every entry of an archive in physical order.

    Entries are NOT sorted, in particular the manifest is only first when it
    is physically first.

    Args:
        archive: Raw archive bytes or a binary stream.
        plugin_name: Owning plugin, used for error reporting only.

    Returns:
        EntryList with one EntryInfo per entry.

    Raises:
        ArchiveDecodeError: The archive is not a readable ZIP container.
            No partial listing is returned.
    """
    try:
        with open_archive(archive) as zip_file:
            infos = [entry_info(zip_file, info) for info in physical_entries(zip_file)]
    except DECODE_ERRORS as e:
        logger.error(f"Failed to list archive entries for plugin {plugin_name}: {e}")
        raise ArchiveDecodeError(f"Unable to read archive: {e}", plugin_name=plugin_name) from e

    logger.debug(f"Listed {len(infos)} entries for plugin {plugin_name}")
    return EntryList(infos)
