"""Bitmap-based physical memory manager working in 4 KiB blocks."""

from __future__ import annotations

BLOCK_SIZE = 4096
BLOCKS_PER_BYTE = 8
_WORD_BITS = 32
_FULL_WORD = 0xFFFFFFFF


class OutOfMemoryError(MemoryError):
    """Raised when not enough free physical blocks are available."""


class PhysicalMemoryManager:
    """Tracks which physical blocks are used with one bit per block.

    A set bit marks a block as used or reserved; a clear bit marks it free.
    Every block starts out reserved until a region is initialised.
    """

    def __init__(self, start_address: int, size: int) -> None:
        self.map_address = start_address
        self.max_blocks = size // BLOCK_SIZE
        self.used_blocks = self.max_blocks
        self._words = [_FULL_WORD] * (self.max_blocks // _WORD_BITS + 1)

    @property
    def free_count(self) -> int:
        """Number of blocks the manager counts as free."""
        return self.max_blocks - self.used_blocks

    def _check(self, bit: int) -> None:
        if not 0 <= bit < self.max_blocks:
            raise ValueError(f"block {bit} is outside 0..{self.max_blocks - 1}")

    def set_block(self, bit: int) -> None:
        """Mark a block as used."""
        self._check(bit)
        self._words[bit // _WORD_BITS] |= 1 << (bit % _WORD_BITS)

    def unset_block(self, bit: int) -> None:
        """Mark a block as free."""
        self._check(bit)
        self._words[bit // _WORD_BITS] &= ~(1 << (bit % _WORD_BITS)) & _FULL_WORD

    def test_block(self, bit: int) -> bool:
        """Return True if the block is used."""
        self._check(bit)
        return bool(self._words[bit // _WORD_BITS] & (1 << (bit % _WORD_BITS)))

    def _run_is_free(self, start: int, num_blocks: int) -> bool:
        end = start + num_blocks
        if end > self.max_blocks:
            return False
        return not any(self.test_block(bit) for bit in range(start, end))

    def find_first_free_blocks(self, num_blocks: int) -> int | None:
        """Return the first block of a free run of ``num_blocks`` blocks, or None."""
        if num_blocks <= 0:
            raise ValueError("cannot search for an empty run of blocks")
        full_words = self.max_blocks // _WORD_BITS
        for word_index, word in enumerate(self._words[:full_words]):
            if word == _FULL_WORD:
                continue
            for offset in range(_WORD_BITS):
                start = word_index * _WORD_BITS + offset
                if self._run_is_free(start, num_blocks):
                    return start
        return None

    def initialize_memory_region(self, base_address: int, size: int) -> None:
        """Mark a region as available; block 0 always stays reserved."""
        first = base_address // BLOCK_SIZE
        for bit in range(first, first + size // BLOCK_SIZE):
            self.unset_block(bit)
            self.used_blocks -= 1
        self.set_block(0)

    def deinitialize_memory_region(self, base_address: int, size: int) -> None:
        """Mark a region as reserved."""
        first = base_address // BLOCK_SIZE
        for bit in range(first, first + size // BLOCK_SIZE):
            self.set_block(bit)
            self.used_blocks += 1

    def allocate_blocks(self, num_blocks: int) -> int:
        """Reserve a contiguous run of blocks and return its physical address."""
        if self.free_count <= num_blocks:
            raise OutOfMemoryError(
                f"{self.free_count} free blocks, cannot allocate {num_blocks}"
            )
        start = self.find_first_free_blocks(num_blocks)
        if start is None:
            raise OutOfMemoryError(f"no contiguous run of {num_blocks} free blocks")
        for bit in range(start, start + num_blocks):
            self.set_block(bit)
        self.used_blocks += num_blocks
        return start * BLOCK_SIZE

    def free_blocks(self, address: int, num_blocks: int) -> None:
        """Release ``num_blocks`` blocks starting at a physical address."""
        start = address // BLOCK_SIZE
        for bit in range(start, start + num_blocks):
            self.unset_block(bit)
        self.used_blocks -= num_blocks