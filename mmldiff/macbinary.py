"""MacBinary envelope and the classic resource fork inside it.

Layout of the parts we read (all big-endian)::

    envelope        128 bytes; CRC-16/XMODEM of bytes 0-123 stored at 124-125
    resource fork   starts at 128 + data fork length rounded up to 128
      header        data_offset, map_offset, data_length, map_length (u32 each)
      map + 24      u16 type list offset, u16 name list offset
      type list     u16 count - 1, then 8-byte entries
                    (type, i16 refs - 1, i16 ref list offset)
      ref lists     12-byte entries (i16 id, i16 name offset,
                    u32 flags:8 | data offset:24, u32 reserved)
      data          u32 length, then the resource body

Only the string lists, interface color table and interface rectangle list
are decoded; every other resource type is stepped over.
"""

from __future__ import annotations

import binascii
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .cursor import ByteCursor, Source, as_cursor
from .errors import InvalidEnvelope, Truncated, UnexpectedCardinality
from .records import RGBColor, Rect, read_array

ENVELOPE_SIZE = 128
CRC_SPAN = 124
MAX_NAME_LENGTH = 63
MAX_MINIMUM_VERSION = 0x81
FORK_ALIGNMENT = 128

MAP_TYPE_LIST_OFFSET = 24
REF_LIST_ENTRY_SIZE = 12
DATA_OFFSET_MASK = 0x00FFFFFF

STRING_LIST_TYPE = b"STR#"
COLOR_TABLE_TYPE = b"clut"
RECT_LIST_TYPE = b"nrct"
INTERFACE_COLOR_ID = 130
INTERFACE_RECT_ID = 128
INTERFACE_COLOR_COUNT = 25
INTERFACE_RECT_COUNT = 18


def crc16_xmodem(data: bytes) -> int:
    """CRC-16/XMODEM: poly 0x1021, init 0, no reflection, no final xor."""
    return binascii.crc_hqx(data, 0)


@dataclass(frozen=True)
class MacBinaryHeader:
    name: bytes
    file_type: bytes
    creator: bytes
    data_length: int
    resource_length: int
    crc: int

    @classmethod
    def from_bytes(cls, data: bytes) -> "MacBinaryHeader":
        if len(data) < ENVELOPE_SIZE:
            raise Truncated(
                f"file too short for MacBinary header ({len(data)} bytes, need {ENVELOPE_SIZE})",
                offset=len(data),
            )
        header = data[:ENVELOPE_SIZE]
        if header[0] != 0:
            raise InvalidEnvelope(f"header byte 0 is 0x{header[0]:02X}, expected 0", offset=0)
        if header[1] > MAX_NAME_LENGTH:
            raise InvalidEnvelope(f"file name length {header[1]} exceeds {MAX_NAME_LENGTH}", offset=1)
        if header[74] != 0:
            raise InvalidEnvelope(f"header byte 74 is 0x{header[74]:02X}, expected 0", offset=74)
        if header[123] > MAX_MINIMUM_VERSION:
            raise InvalidEnvelope(
                f"minimum MacBinary version 0x{header[123]:02X} exceeds 0x{MAX_MINIMUM_VERSION:02X}",
                offset=123,
            )

        stored = int.from_bytes(header[124:126], "big")
        computed = crc16_xmodem(header[:CRC_SPAN])
        if stored != computed:
            raise InvalidEnvelope(
                f"header CRC mismatch (stored 0x{stored:04X}, computed 0x{computed:04X})",
                offset=124,
            )

        return cls(
            name=header[2 : 2 + header[1]],
            file_type=header[65:69],
            creator=header[69:73],
            data_length=int.from_bytes(header[83:87], "big"),
            resource_length=int.from_bytes(header[87:91], "big"),
            crc=stored,
        )

    @property
    def resource_fork_offset(self) -> int:
        padded = (self.data_length + FORK_ALIGNMENT - 1) // FORK_ALIGNMENT * FORK_ALIGNMENT
        return ENVELOPE_SIZE + padded


@dataclass(frozen=True)
class ResourceForkHeader:
    """Offsets here are absolute (already rebased onto the fork start)."""

    data_offset: int
    map_offset: int
    data_length: int
    map_length: int

    @classmethod
    def read(cls, cursor: ByteCursor) -> "ResourceForkHeader":
        start = cursor.offset
        data_offset, map_offset, data_length, map_length = (cursor.read_u32be() for _ in range(4))
        return cls(
            data_offset=data_offset + start,
            map_offset=map_offset + start,
            data_length=data_length,
            map_length=map_length,
        )


@dataclass(frozen=True)
class TypeListEntry:
    type: bytes
    num_refs: int  # stored value + 1
    ref_list_offset: int

    @classmethod
    def read(cls, cursor: ByteCursor) -> "TypeListEntry":
        return cls(
            type=cursor.read_exact(4),
            num_refs=cursor.read_i16be() + 1,
            ref_list_offset=cursor.read_i16be(),
        )


@dataclass(frozen=True)
class RefListEntry:
    id: int
    name_offset: int
    data_offset: int  # relative to the fork's data section, flags masked off
    attributes: int

    @classmethod
    def read(cls, cursor: ByteCursor) -> "RefListEntry":
        resource_id = cursor.read_i16be()
        name_offset = cursor.read_i16be()
        word = cursor.read_u32be()
        cursor.skip(4)
        return cls(
            id=resource_id,
            name_offset=name_offset,
            data_offset=word & DATA_OFFSET_MASK,
            attributes=word >> 24,
        )


@dataclass(frozen=True)
class ResourceState:
    """Decoded resource fork.

    ``strings`` maps STR# ids (ascending) to their raw, undecoded strings.
    The interface tables are None when the fork has no such resource.
    """

    envelope: MacBinaryHeader
    strings: Mapping[int, Tuple[bytes, ...]]
    interface_colors: Optional[Tuple[RGBColor, ...]] = None
    interface_rects: Optional[Tuple[Rect, ...]] = None


def _read_string_list(cursor: ByteCursor) -> Tuple[bytes, ...]:
    cursor.read_u32be()  # resource length
    count = cursor.read_i16be()
    strings: List[bytes] = []
    for _ in range(count):
        length = cursor.read_u8()
        strings.append(cursor.read_exact(length))
    return tuple(strings)


def _read_color_table(cursor: ByteCursor) -> Tuple[RGBColor, ...]:
    start = cursor.offset
    cursor.read_u32be()  # resource length
    cursor.read_u32be()  # seed
    cursor.read_u16be()  # flags
    count = cursor.read_u16be()
    if count != INTERFACE_COLOR_COUNT:
        raise UnexpectedCardinality(
            f"clut {INTERFACE_COLOR_ID} at offset {start} holds {count} colors, "
            f"expected {INTERFACE_COLOR_COUNT}",
            offset=start,
            tag=COLOR_TABLE_TYPE,
        )
    colors: List[RGBColor] = []
    for _ in range(count):
        cursor.read_u16be()  # pixel value
        colors.append(RGBColor.read(cursor))
    return tuple(colors)


def _read_rect_list(cursor: ByteCursor) -> Tuple[Rect, ...]:
    start = cursor.offset
    cursor.read_u32be()  # resource length
    count = cursor.read_u16be()
    if count != INTERFACE_RECT_COUNT:
        raise UnexpectedCardinality(
            f"nrct {INTERFACE_RECT_ID} at offset {start} holds {count} rectangles, "
            f"expected {INTERFACE_RECT_COUNT}",
            offset=start,
            tag=RECT_LIST_TYPE,
        )
    return read_array(cursor, Rect.read, count)


def read_type_list(cursor: ByteCursor, header: ResourceForkHeader) -> List[TypeListEntry]:
    """Position ``cursor`` on the type list and read its entries.

    The cursor is left just past the last entry, where the reference lists
    begin.
    """
    cursor.seek(header.map_offset + MAP_TYPE_LIST_OFFSET)
    type_list_offset = cursor.read_u16be()  # relative to the map
    cursor.seek(header.map_offset + type_list_offset)
    num_types = (cursor.read_u16be() + 1) & 0xFFFF
    return [TypeListEntry.read(cursor) for _ in range(num_types)]


def decode_resource_fork(source: Source) -> ResourceState:
    """Decode a MacBinary file into a :class:`ResourceState`."""
    cursor = as_cursor(source)
    envelope = MacBinaryHeader.from_bytes(cursor.read_upto(ENVELOPE_SIZE))

    cursor.seek(envelope.resource_fork_offset)
    header = ResourceForkHeader.read(cursor)
    type_list = read_type_list(cursor, header)

    string_offsets: Dict[int, int] = {}
    color_offset: Optional[int] = None
    rect_offset: Optional[int] = None

    for entry in type_list:
        if entry.type == STRING_LIST_TYPE:
            for _ in range(entry.num_refs):
                ref = RefListEntry.read(cursor)
                string_offsets[ref.id] = ref.data_offset
        elif entry.type == COLOR_TABLE_TYPE:
            for _ in range(entry.num_refs):
                ref = RefListEntry.read(cursor)
                if ref.id == INTERFACE_COLOR_ID:
                    color_offset = ref.data_offset
        elif entry.type == RECT_LIST_TYPE:
            for _ in range(entry.num_refs):
                ref = RefListEntry.read(cursor)
                if ref.id == INTERFACE_RECT_ID:
                    rect_offset = ref.data_offset
        else:
            cursor.seek(REF_LIST_ENTRY_SIZE * max(entry.num_refs, 0), os.SEEK_CUR)

    strings: Dict[int, Tuple[bytes, ...]] = {}
    for resource_id in sorted(string_offsets):
        cursor.seek(header.data_offset + string_offsets[resource_id])
        strings[resource_id] = _read_string_list(cursor)

    interface_colors = None
    if color_offset is not None:
        cursor.seek(header.data_offset + color_offset)
        interface_colors = _read_color_table(cursor)

    interface_rects = None
    if rect_offset is not None:
        cursor.seek(header.data_offset + rect_offset)
        interface_rects = _read_rect_list(cursor)

    return ResourceState(
        envelope=envelope,
        strings=MappingProxyType(strings),
        interface_colors=interface_colors,
        interface_rects=interface_rects,
    )
