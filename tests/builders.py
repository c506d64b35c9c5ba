"""Pack synthetic chunk containers and MacBinary resource forks for tests."""

from __future__ import annotations

import binascii
import struct
from typing import Dict, Iterable, List, Sequence, Tuple

# Mandated payload sizes of the known chunk tags, in file order.
KNOWN_SIZES: Dict[bytes, int] = {
    b"Clfx": 768,
    b"Damg": 288,
    b"Ivcl": 24,
    b"Mdia": 260,
    b"Mpln": 42,
    b"Mpnc": 6,
    b"Mppl": 36,
    b"Mptx": 18,
    b"Panl": 1188,
    b"Rand": 10,
    b"Scnr": 732,
    b"Type": 28,
    b"Wep2": 580,
}


# --- chunk container records ---


def color(red: int = 0, green: int = 0, blue: int = 0) -> bytes:
    return struct.pack(">3H", red, green, blue)


def panel(
    panel_class: int = 0,
    flags: int = 0,
    collection: int = 0,
    active: int = 0,
    inactive: int = 0,
    sounds: Sequence[int] = (0, 0, 0),
    frequency: int = 0,
    item: int = 0,
) -> bytes:
    return struct.pack(">hHhhh3hih", panel_class, flags, collection, active, inactive, *sounds, frequency, item)


def damage_response(
    type: int = 0,
    threshold: int = 0,
    fade: int = 0,
    sound: int = 0,
    death_sound: int = 0,
    death_action: int = 0,
) -> bytes:
    return struct.pack(">6h", type, threshold, fade, sound, death_sound, death_action)


def fader(
    proc: int = 0,
    rgb: bytes = b"\x00" * 6,
    initial: int = 0,
    final: int = 0,
    period: int = 0,
    flags: int = 0,
    priority: int = 0,
) -> bytes:
    return struct.pack(">I", proc) + rgb + struct.pack(">iihHh", initial, final, period, flags, priority)


def line(rgb: bytes = b"\x00" * 6, pens: Sequence[int] = (0, 0, 0, 0)) -> bytes:
    return rgb + struct.pack(">4h", *pens)


def annotation(
    rgb: bytes = b"\x00" * 6, font: int = 22, face: int = 0, sizes: Sequence[int] = (5, 9, 12, 18)
) -> bytes:
    return rgb + struct.pack(">hh4h", font, face, *sizes)


def damage(type: int = 0, flags: int = 0, base: int = 0, random: int = 0, scale: int = 0) -> bytes:
    return struct.pack(">4hi", type, flags, base, random, scale)


def media(
    collection: int = 0,
    shape: int = 0,
    shape_count: int = 0,
    shape_frequency: int = 0,
    transfer_mode: int = 0,
    damage_frequency: int = 0,
    damage_bytes: bytes = b"\x00" * 12,
    effects: Sequence[int] = (0, 0, 0, 0),
    sounds: Sequence[int] = (0,) * 9,
    submerged: int = 0,
) -> bytes:
    head = struct.pack(
        ">6h", collection, shape, shape_count, shape_frequency, transfer_mode, damage_frequency
    )
    return head + damage_bytes + struct.pack(">4h", *effects) + struct.pack(">9h", *sounds) + struct.pack(">h", submerged)


def scenery(
    flags: int = 0,
    shape: int = 0,
    radius: int = 0,
    height: int = 0,
    destroyed_effect: int = 0,
    destroyed_shape: int = 0,
) -> bytes:
    return struct.pack(">HHhhhH", flags, shape, radius, height, destroyed_effect, destroyed_shape)


def ammo(
    type: int = 0,
    left: int = 0,
    top: int = 0,
    across: int = 0,
    down: int = 0,
    delta_x: int = 0,
    delta_y: int = 0,
    bullet: int = 0,
    empty: int = 0,
    right_to_left: int = 0,
) -> bytes:
    return struct.pack(">9hH", type, left, top, across, down, delta_x, delta_y, bullet, empty, right_to_left)


def weapon(
    item_id: int = 0,
    shape: int = 0,
    start_y: int = 0,
    end_y: int = 0,
    start_x: int = 0,
    end_x: int = 0,
    top: int = 0,
    left: int = 0,
    multiple: int = 0,
    ammo_records: Sequence[bytes] = (b"\x00" * 20, b"\x00" * 20),
) -> bytes:
    head = struct.pack(">8hH", item_id, shape, start_y, end_y, start_x, end_x, top, left, multiple)
    return head + b"".join(ammo_records)


def sample_scenery() -> List[bytes]:
    """61 distinct scenery records."""
    return [
        scenery(
            flags=index & 3,
            shape=0x0807 + index,
            radius=64 + index,
            height=128,
            destroyed_effect=-1,
            destroyed_shape=0xFFFF,
        )
        for index in range(61)
    ]


# --- chunk containers ---


def chunk(tag: bytes, payload: bytes, length: int | None = None) -> bytes:
    if length is None:
        length = len(payload)
    return tag + struct.pack(">I", length) + payload


def container(chunks: Iterable[Tuple[bytes, bytes]]) -> bytes:
    return b"".join(chunk(tag, payload) for tag, payload in chunks)


def physics_chunks(**overrides: bytes) -> List[Tuple[bytes, bytes]]:
    """Every known tag with a zero payload, except tags named in ``overrides``.

    Keyword names are the tags themselves, e.g. ``Scnr=payload``.
    """
    chunks: List[Tuple[bytes, bytes]] = []
    for tag, size in KNOWN_SIZES.items():
        payload = overrides.get(tag.decode("ascii"), b"\x00" * size)
        assert len(payload) == size, f"{tag!r} payload is {len(payload)} bytes"
        chunks.append((tag, payload))
    return chunks


def physics_file(extra: Iterable[Tuple[bytes, bytes]] = (), **overrides: bytes) -> bytes:
    return container(physics_chunks(**overrides) + list(extra))


# --- MacBinary resource forks ---


def string_list(strings: Sequence[bytes]) -> bytes:
    body = struct.pack(">h", len(strings))
    for text in strings:
        body += bytes([len(text)]) + text
    return body


def color_table(colors: Sequence[Tuple[int, int, int]], count: int | None = None) -> bytes:
    if count is None:
        count = len(colors)
    body = struct.pack(">IHH", 0x12345678, 0x8000, count)
    for pixel, (red, green, blue) in enumerate(colors):
        body += struct.pack(">4H", pixel, red, green, blue)
    return body


def rect_list(rects: Sequence[Tuple[int, int, int, int]], count: int | None = None) -> bytes:
    if count is None:
        count = len(rects)
    body = struct.pack(">H", count)
    for rect in rects:
        body += struct.pack(">4H", *rect)
    return body


def interface_colors(seed: int = 0) -> List[Tuple[int, int, int]]:
    return [((index * 2000 + seed) & 0xFFFF, 0x8000, 0xFFFF - index) for index in range(25)]


def interface_rects(seed: int = 0) -> List[Tuple[int, int, int, int]]:
    return [(index, index + seed, index + 20, index + 40) for index in range(18)]


def resource_fork(
    resources: Dict[bytes, Sequence[Tuple[int, bytes]]],
    flags: int = 0x20,
    type_list_gap: int = 0,
) -> bytes:
    """Lay out a resource fork holding ``resources`` (type -> [(id, body)]).

    ``type_list_gap`` pads the map between its header and the type list.
    """
    data = b""
    refs: List[Tuple[bytes, List[Tuple[int, int]]]] = []
    for res_type, entries in resources.items():
        placed = []
        for res_id, body in entries:
            placed.append((res_id, len(data)))
            data += struct.pack(">I", len(body)) + body
        refs.append((res_type, placed))

    data_offset = 16
    map_offset = data_offset + len(data)

    type_list = struct.pack(">H", (len(refs) - 1) & 0xFFFF)
    ref_lists = b""
    ref_base = 2 + 8 * len(refs)
    for res_type, placed in refs:
        type_list += res_type + struct.pack(">hh", len(placed) - 1, ref_base + len(ref_lists))
        for res_id, offset in placed:
            ref_lists += struct.pack(">hhII", res_id, -1, (flags << 24) | offset, 0)

    type_list_offset = 28 + type_list_gap
    name_list_offset = type_list_offset + len(type_list) + len(ref_lists)
    resource_map = bytes(16) + bytes(4) + bytes(2) + bytes(2) + struct.pack(">HH", type_list_offset, name_list_offset)
    resource_map += bytes(type_list_gap) + type_list + ref_lists
    header = struct.pack(">IIII", data_offset, map_offset, len(data), len(resource_map))
    return header + data + resource_map


def envelope(
    data_length: int,
    resource_length: int,
    name: bytes = b"Marathon Infinity",
    crc: int | None = None,
) -> bytes:
    header = bytearray(128)
    header[1] = len(name)
    header[2 : 2 + len(name)] = name
    header[65:69] = b"APPL"
    header[69:73] = b"26.\xa1"
    header[83:87] = struct.pack(">I", data_length)
    header[87:91] = struct.pack(">I", resource_length)
    header[122] = 0x81
    header[123] = 0x81
    if crc is None:
        crc = binascii.crc_hqx(bytes(header[:124]), 0)
    header[124:126] = struct.pack(">H", crc)
    return bytes(header)


def macbinary(fork: bytes, data_fork: bytes = b"") -> bytes:
    padding = (-len(data_fork)) % 128
    return envelope(len(data_fork), len(fork)) + data_fork + bytes(padding) + fork


def application(
    strings: Dict[int, Sequence[bytes]] | None = None,
    colors: Sequence[Tuple[int, int, int]] | None = None,
    rects: Sequence[Tuple[int, int, int, int]] | None = None,
    data_fork: bytes = b"",
    extra: Dict[bytes, Sequence[Tuple[int, bytes]]] | None = None,
) -> bytes:
    """A MacBinary application carrying the resources the decoder reads."""
    resources: Dict[bytes, Sequence[Tuple[int, bytes]]] = {}
    if extra:
        resources.update(extra)
    if strings:
        resources[b"STR#"] = [(res_id, string_list(values)) for res_id, values in strings.items()]
    if colors is not None:
        resources[b"clut"] = [(128, color_table(colors[:4])), (130, color_table(colors))]
    if rects is not None:
        resources[b"nrct"] = [(128, rect_list(rects))]
    return macbinary(resource_fork(resources), data_fork)
