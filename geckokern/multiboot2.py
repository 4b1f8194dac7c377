"""Multiboot2 constants and a parser for the boot information structure."""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterator
from dataclasses import dataclass, field

HEADER_MAGIC = 0xE85250D6
ARCH_I386 = 0
BOOTLOADER_MAGIC = 0x36D76289

HEADER_TAG_END = 0
HEADER_TAG_INFORMATION_REQUEST = 1
HEADER_TAG_ADDRESS = 2
HEADER_TAG_ENTRY_ADDRESS = 3
HEADER_TAG_CONSOLE_FLAGS = 4
HEADER_TAG_FRAMEBUFFER = 5
HEADER_TAG_MODULE_ALIGN = 6

_PAIR = struct.Struct("<II")
_MMAP_ENTRY = struct.Struct("<QQII")
_FRAMEBUFFER = struct.Struct("<QIIIBBH")


class TagType(enum.IntEnum):
    END = 0
    CMDLINE = 1
    BOOT_LOADER_NAME = 2
    MODULE = 3
    BASIC_MEMINFO = 4
    BOOTDEV = 5
    MMAP = 6
    VBE = 7
    FRAMEBUFFER = 8
    ELF_SECTIONS = 9
    APM = 10
    EFI32 = 11
    EFI64 = 12
    SMBIOS = 13
    ACPI_OLD = 14
    ACPI_NEW = 15


class MemoryType(enum.IntEnum):
    AVAILABLE = 1
    RESERVED = 2
    ACPI_RECLAIMABLE = 3
    NVS = 4
    BADRAM = 5


class BootInfoError(ValueError):
    """Raised when a boot information structure is malformed."""


@dataclass(frozen=True)
class Tag:
    type: TagType | int
    size: int
    payload: bytes
    offset: int


@dataclass(frozen=True)
class MemoryMapEntry:
    base_addr: int
    length: int
    type: MemoryType | int


@dataclass(frozen=True)
class BasicMemInfo:
    mem_lower: int
    mem_upper: int


@dataclass(frozen=True)
class FramebufferInfo:
    addr: int
    pitch: int
    width: int
    height: int
    bpp: int
    type: int


@dataclass
class BootInfo:
    total_size: int
    cmdline: str | None = None
    bootloader_name: str | None = None
    meminfo: BasicMemInfo | None = None
    memory_map: list[MemoryMapEntry] = field(default_factory=list)
    framebuffer: FramebufferInfo | None = None
    acpi_rsdp: bytes | None = None
    tags: list[Tag] = field(default_factory=list)


def _enum_or_int(kind, value: int):
    try:
        return kind(value)
    except ValueError:
        return value


def check_bootloader_magic(eax: int) -> bool:
    """True if ``eax`` holds the value a Multiboot2 loader passes."""
    return eax == BOOTLOADER_MAGIC


def iter_tags(data: bytes) -> Iterator[Tag]:
    """Yield the tags of a boot information structure up to the end tag."""
    data = bytes(data)
    if len(data) < _PAIR.size:
        raise BootInfoError("boot information is shorter than its header")
    total_size, _ = _PAIR.unpack_from(data)
    if total_size < _PAIR.size or total_size > len(data):
        raise BootInfoError(f"total size {total_size} does not fit the data")
    offset = _PAIR.size
    while offset + _PAIR.size <= total_size:
        tag_type, size = _PAIR.unpack_from(data, offset)
        if size < _PAIR.size or offset + size > total_size:
            raise BootInfoError(f"tag at offset {offset} has bad size {size}")
        if tag_type == TagType.END:
            return
        payload = data[offset + _PAIR.size : offset + size]
        yield Tag(_enum_or_int(TagType, tag_type), size, payload, offset)
        offset = (offset + size + 7) & ~7
    raise BootInfoError("boot information has no end tag")


def _string(payload: bytes) -> str:
    return payload.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _memory_map(payload: bytes) -> list[MemoryMapEntry]:
    if len(payload) < _PAIR.size:
        raise BootInfoError("memory map tag is too short")
    entry_size, _version = _PAIR.unpack_from(payload)
    if entry_size < _MMAP_ENTRY.size:
        raise BootInfoError(f"memory map entry size {entry_size} is too small")
    body = payload[_PAIR.size :]
    entries = []
    for start in range(0, len(body) - entry_size + 1, entry_size):
        base, length, kind, _ = _MMAP_ENTRY.unpack_from(body, start)
        entries.append(MemoryMapEntry(base, length, _enum_or_int(MemoryType, kind)))
    return entries


def _need(payload: bytes, size: int, what: str) -> None:
    if len(payload) < size:
        raise BootInfoError(f"{what} tag is too short")


def parse_boot_info(data: bytes) -> BootInfo:
    """Parse a boot information structure into its known fields."""
    total_size, _ = _PAIR.unpack_from(bytes(data)) if len(data) >= _PAIR.size else (0, 0)
    info = BootInfo(total_size=total_size)
    for tag in iter_tags(data):
        info.tags.append(tag)
        payload = tag.payload
        if tag.type == TagType.CMDLINE:
            info.cmdline = _string(payload)
        elif tag.type == TagType.BOOT_LOADER_NAME:
            info.bootloader_name = _string(payload)
        elif tag.type == TagType.BASIC_MEMINFO:
            _need(payload, _PAIR.size, "basic meminfo")
            info.meminfo = BasicMemInfo(*_PAIR.unpack_from(payload))
        elif tag.type == TagType.MMAP:
            info.memory_map = _memory_map(payload)
        elif tag.type == TagType.FRAMEBUFFER:
            _need(payload, _FRAMEBUFFER.size, "framebuffer")
            addr, pitch, width, height, bpp, fb_type, _ = _FRAMEBUFFER.unpack_from(payload)
            info.framebuffer = FramebufferInfo(addr, pitch, width, height, bpp, fb_type)
        elif tag.type in (TagType.ACPI_OLD, TagType.ACPI_NEW):
            info.acpi_rsdp = payload
    return info