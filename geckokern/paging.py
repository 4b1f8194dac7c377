"""Two-level x86 page tables backed by a physical memory manager."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from geckokern.physical_mem import PhysicalMemoryManager

PAGE_SIZE = 4096
PAGES_PER_TABLE = 1024
TABLES_PER_DIRECTORY = 1024
KERNEL_ADDRESS = 0x100000
HIGHER_HALF_ADDRESS = 0xC0000000

_MASK32 = 0xFFFFFFFF
_FRAME_BITS = 0x7FFFF000


class PageTableFlags(enum.IntFlag):
    PRESENT = 0x01
    READ_AND_WRITE = 0x02
    USER = 0x04
    WRITE_THROUGH = 0x08
    CACHE_DISABLE = 0x10
    ACCESSED = 0x20
    DIRTY = 0x40
    PAT = 0x80
    GLOBAL = 0x100
    FRAME = 0x7FFFF000


class PageDirFlags(enum.IntFlag):
    PRESENT = 0x01
    READ_AND_WRITE = 0x02
    USER = 0x04
    WRITE_THROUGH = 0x08
    CACHE_DISABLE = 0x10
    ACCESSED = 0x20
    DIRTY = 0x40
    PAGE_SIZE = 0x80
    GLOBAL = 0x100
    PAT = 0x2000
    FRAME = 0x7FFFF000


def pd_index(address: int) -> int:
    """Index into the page directory for a virtual address."""
    return (address & _MASK32) >> 22


def pt_index(address: int) -> int:
    """Index into a page table for a virtual address."""
    return ((address & _MASK32) >> 12) & 0x3FF


def frame_address(entry: int) -> int:
    """Physical frame address stored in an entry (low 12 bits cleared)."""
    return entry & ~0xFFF & _MASK32


def _set_frame(entry: int, address: int) -> int:
    return ((entry & ~_FRAME_BITS) | address) & _MASK32


@dataclass
class PageTable:
    """1024 page table entries covering 4 MiB."""

    entries: list[int] = field(default_factory=lambda: [0] * PAGES_PER_TABLE)


@dataclass
class PageDirectory:
    """1024 directory entries covering 4 GiB."""

    entries: list[int] = field(default_factory=lambda: [0] * TABLES_PER_DIRECTORY)


class VirtualMemoryManager:
    """Builds and edits page directories whose tables live in physical blocks."""

    def __init__(self, allocator: PhysicalMemoryManager) -> None:
        self.allocator = allocator
        self.paging_enabled = False
        self._current: PageDirectory | None = None
        self._tables: dict[int, PageTable | PageDirectory] = {}

    def _allocate(self, num_blocks: int = 1, kind: type = PageTable):
        address = self.allocator.allocate_blocks(num_blocks)
        table = kind()
        self._tables[address] = table
        return address, table

    def new_address_space(self) -> PageDirectory:
        """Return an empty page directory."""
        return PageDirectory()

    def table_at(self, address: int) -> PageTable | PageDirectory:
        """Return the table stored in the physical frame at ``address``."""
        frame = frame_address(address)
        try:
            return self._tables[frame]
        except KeyError:
            raise LookupError(f"no page table at physical address {frame:#x}") from None

    def get_page_directory(self) -> PageDirectory | None:
        return self._current

    def set_page_directory(self, directory: PageDirectory) -> None:
        if directory is None:
            raise ValueError("page directory must not be None")
        self._current = directory

    def _require_current(self) -> PageDirectory:
        if self._current is None:
            raise RuntimeError("no page directory is active")
        return self._current

    def _locate(self, address: int) -> tuple[PageTable, int]:
        directory = self._require_current()
        table = self.table_at(frame_address(directory.entries[pd_index(address)]))
        return table, pt_index(address)

    def get_page(self, address: int) -> int:
        """Return the page table entry for a virtual address in the active directory."""
        table, index = self._locate(address)
        return table.entries[index]

    def map_page(self, physical_address: int, virtual_address: int) -> None:
        """Map one page in the active directory, creating its table if needed."""
        directory = self._require_current()
        index = pd_index(virtual_address)
        if not directory.entries[index] & PageDirFlags.PRESENT:
            address, _ = self._allocate()
            entry = directory.entries[index] | PageDirFlags.PRESENT | PageDirFlags.READ_AND_WRITE
            directory.entries[index] = _set_frame(entry, address)
        table = self.table_at(directory.entries[index])
        slot = pt_index(virtual_address)
        table.entries[slot] = _set_frame(table.entries[slot], physical_address) | PageTableFlags.PRESENT

    def unmap_page(self, virtual_address: int) -> None:
        """Clear the frame and present bit of a page in the active directory."""
        table, index = self._locate(virtual_address)
        entry = _set_frame(table.entries[index], 0)
        table.entries[index] = entry & ~PageTableFlags.PRESENT & _MASK32

    def create_page_table(self, directory: PageDirectory, virt: int, flags: int) -> None:
        """Give ``virt`` a page table if it has none; the table is identity mapped."""
        index = pd_index(virt)
        if directory.entries[index] == 0:
            address, _ = self._allocate()
            directory.entries[index] = (address | flags) & _MASK32
            self.map_address(directory, address, address, flags)

    def map_address(self, directory: PageDirectory, phys: int, virt: int, flags: int) -> None:
        """Store ``phys | flags`` as the page entry for ``virt``."""
        index = pd_index(virt)
        if directory.entries[index] == 0:
            self.create_page_table(directory, virt, flags)
        table = self.table_at(directory.entries[index])
        table.entries[pt_index(virt)] = (phys | flags) & _MASK32

    def unmap_page_table(self, directory: PageDirectory, virt: int) -> None:
        """Release the whole page table covering ``virt``."""
        index = pd_index(virt)
        entry = directory.entries[index]
        if entry != 0:
            frame = entry & _FRAME_BITS
            self.allocator.free_blocks(frame, 1)
            self._tables.pop(frame, None)
            directory.entries[index] = 0

    def unmap_address(self, directory: PageDirectory, virt: int) -> None:
        """Unmap ``virt`` by dropping the page table that covers it."""
        if directory.entries[pd_index(virt)] != 0:
            self.unmap_page_table(directory, virt)

    def get_physical_address(self, directory: PageDirectory, virt: int) -> int | None:
        """Return the stored entry (frame and flags) for ``virt``, or None."""
        entry = directory.entries[pd_index(virt)]
        if entry == 0:
            return None
        return self.table_at(entry).entries[pt_index(virt)]

    def initialize(self) -> PageDirectory:
        """Build the default directory, switch to it and enable paging."""
        table_address, table = self._allocate()
        low_address, low_table = self._allocate()

        for i in range(PAGES_PER_TABLE):
            frame = virt = i * PAGE_SIZE
            low_table.entries[pt_index(virt)] = _set_frame(
                PageTableFlags.PRESENT | PageTableFlags.READ_AND_WRITE, frame
            )

        for i in range(PAGES_PER_TABLE):
            frame = KERNEL_ADDRESS + i * PAGE_SIZE
            virt = HIGHER_HALF_ADDRESS + i * PAGE_SIZE
            table.entries[pt_index(virt)] = _set_frame(PageTableFlags.PRESENT, frame)

        _, directory = self._allocate(3, PageDirectory)

        user_flags = PageDirFlags.PRESENT | PageDirFlags.READ_AND_WRITE | PageDirFlags.USER
        for address in (0x0000C000, 0x0000D000):
            directory.entries[pd_index(address)] |= user_flags
            low_table.entries[pt_index(address)] |= PageTableFlags.USER

        rw = PageDirFlags.PRESENT | PageDirFlags.READ_AND_WRITE
        kernel_slot = pd_index(HIGHER_HALF_ADDRESS)
        directory.entries[kernel_slot] = _set_frame(
            directory.entries[kernel_slot] | rw, table_address
        )
        low_slot = pd_index(0x00000000)
        directory.entries[low_slot] = _set_frame(
            directory.entries[low_slot] | rw, low_address
        )

        self.set_page_directory(directory)
        self.paging_enabled = True
        return directory