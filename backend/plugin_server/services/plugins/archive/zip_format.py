"""
Low level ZIP container helpers shared by the archive reader, file extractor
and manifest reader.

zipfile exposes the central directory only; entry timestamps written by jar
tools live in "extra" fields, often only in the local file header, so those
headers are read here directly.
"""

import io
import lzma
import struct
import zipfile
import zlib
from datetime import datetime, timedelta
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple, Union

ArchiveSource = Union[bytes, bytearray, memoryview, BinaryIO]

# Errors that mean "this is not a readable ZIP container"
DECODE_ERRORS = (
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    RuntimeError,
    EOFError,
    OSError,
    struct.error,
    zlib.error,
    lzma.LZMAError,
)

LOCAL_HEADER_SIGNATURE = b"PK\x03\x04"
LOCAL_HEADER_SIZE = 30

EXTENDED_TIMESTAMP_ID = 0x5455
NTFS_ID = 0x000A
NTFS_TIMES_TAG = 0x0001

UNIX_EPOCH = datetime(1970, 1, 1)
NTFS_EPOCH = datetime(1601, 1, 1)


def open_archive(archive: ArchiveSource) -> zipfile.ZipFile:
    """Open raw bytes or a binary stream as a read-only ZipFile."""
    if isinstance(archive, (bytes, bytearray, memoryview)):
        archive = io.BytesIO(bytes(archive))
    return zipfile.ZipFile(archive, "r")


def physical_entries(zip_file: zipfile.ZipFile) -> List[zipfile.ZipInfo]:
    """Entries in the order their local headers appear in the container."""
    return sorted(zip_file.infolist(), key=lambda info: info.header_offset)


def read_local_extra(zip_file: zipfile.ZipFile, info: zipfile.ZipInfo) -> bytes:
    """
    Read the extra field of an entry's local file header.

    Raises:
        zipfile.BadZipFile: The local header is truncated or has a bad signature.
    """
    fp = zip_file.fp
    fp.seek(info.header_offset)
    header = fp.read(LOCAL_HEADER_SIZE)
    if len(header) < LOCAL_HEADER_SIZE or header[:4] != LOCAL_HEADER_SIGNATURE:
        raise zipfile.BadZipFile(f"Bad local file header for {info.filename!r}")

    name_length, extra_length = struct.unpack("<HH", header[26:30])
    fp.seek(info.header_offset + LOCAL_HEADER_SIZE + name_length)
    extra = fp.read(extra_length)
    if len(extra) < extra_length:
        raise zipfile.BadZipFile(f"Truncated extra field for {info.filename!r}")
    return extra


def iter_extra_fields(extra: bytes) -> Iterator[Tuple[int, bytes]]:
    """Yield (header id, data) for each block of a ZIP extra field."""
    offset = 0
    while offset + 4 <= len(extra):
        header_id, size = struct.unpack_from("<HH", extra, offset)
        offset += 4
        yield header_id, extra[offset : offset + size]
        offset += size


def _unix_time(seconds: int) -> Optional[datetime]:
    try:
        return UNIX_EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        return None


def _filetime(value: int) -> Optional[datetime]:
    if value == 0:
        return None
    try:
        return NTFS_EPOCH + timedelta(microseconds=value // 10)
    except OverflowError:
        return None


def _extended_timestamp(data: bytes) -> Dict[str, datetime]:
    # flags byte, then 4 byte unix times for each flag bit that is set
    # (central directory copies usually carry the modification time only)
    if not data:
        return {}

    flags = data[0]
    offset = 1
    times: Dict[str, datetime] = {}
    for bit, key in ((0x1, "modified"), (0x2, "accessed"), (0x4, "created")):
        if not flags & bit:
            continue
        if offset + 4 > len(data):
            break
        (seconds,) = struct.unpack_from("<i", data, offset)
        offset += 4
        value = _unix_time(seconds)
        if value is not None:
            times[key] = value
    return times


def _ntfs_timestamp(data: bytes) -> Dict[str, datetime]:
    # 4 reserved bytes, then tagged attributes; tag 1 holds mtime, atime, ctime
    offset = 4
    while offset + 4 <= len(data):
        tag, size = struct.unpack_from("<HH", data, offset)
        offset += 4
        if tag == NTFS_TIMES_TAG and size >= 24 and offset + 24 <= len(data):
            modified, accessed, created = struct.unpack_from("<QQQ", data, offset)
            times = {
                "modified": _filetime(modified),
                "accessed": _filetime(accessed),
                "created": _filetime(created),
            }
            return {k: v for k, v in times.items() if v is not None}
        offset += size
    return {}


def extra_timestamps(extra: bytes) -> Dict[str, datetime]:
    """
    Collect UTC timestamps from the extended timestamp and NTFS extra blocks.

    Returns:
        Mapping with any of the keys "modified", "accessed" and "created".
    """
    times: Dict[str, datetime] = {}
    for header_id, data in iter_extra_fields(extra):
        if header_id == NTFS_ID:
            times.update(_ntfs_timestamp(data))
    # Info-ZIP extended timestamps take precedence over NTFS times
    for header_id, data in iter_extra_fields(extra):
        if header_id == EXTENDED_TIMESTAMP_ID:
            times.update(_extended_timestamp(data))
    return times


def dos_timestamp(info: zipfile.ZipInfo) -> Optional[datetime]:
    try:
        return datetime(*info.date_time)
    except (TypeError, ValueError):
        return None
