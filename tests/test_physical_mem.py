import pytest

from geckokern.physical_mem import (
    BLOCK_SIZE,
    OutOfMemoryError,
    PhysicalMemoryManager,
)


def make_manager(blocks=128):
    manager = PhysicalMemoryManager(0x10000, blocks * BLOCK_SIZE)
    manager.initialize_memory_region(0, blocks * BLOCK_SIZE)
    return manager


def test_new_manager_reserves_everything():
    manager = PhysicalMemoryManager(0x10000, 64 * BLOCK_SIZE)
    assert manager.max_blocks == 64
    assert manager.used_blocks == manager.max_blocks
    assert all(manager.test_block(bit) for bit in range(64))
    with pytest.raises(OutOfMemoryError):
        manager.allocate_blocks(1)


def test_initialize_region_keeps_block_zero_reserved():
    manager = make_manager()
    assert manager.test_block(0)
    assert not manager.test_block(1)
    assert manager.allocate_blocks(1) == 1 * BLOCK_SIZE


def test_set_and_unset_block_round_trip():
    manager = make_manager()
    manager.set_block(40)
    assert manager.test_block(40)
    manager.unset_block(40)
    assert not manager.test_block(40)


def test_block_out_of_range_rejected():
    manager = make_manager(64)
    with pytest.raises(ValueError):
        manager.set_block(64)


def test_find_zero_blocks_is_error():
    manager = make_manager()
    with pytest.raises(ValueError):
        manager.find_first_free_blocks(0)


def test_allocations_do_not_overlap():
    manager = make_manager()
    first = manager.allocate_blocks(3)
    second = manager.allocate_blocks(2)
    assert second == first + 3 * BLOCK_SIZE
    for bit in range(first // BLOCK_SIZE, second // BLOCK_SIZE + 2):
        assert manager.test_block(bit)


def test_free_then_reallocate_returns_same_address():
    manager = make_manager()
    address = manager.allocate_blocks(4)
    used = manager.used_blocks
    manager.free_blocks(address, 4)
    assert manager.used_blocks == used - 4
    assert manager.allocate_blocks(4) == address


def test_run_must_be_contiguous():
    manager = make_manager(64)
    manager.deinitialize_memory_region(0, 64 * BLOCK_SIZE)
    manager.initialize_memory_region(10 * BLOCK_SIZE, 2 * BLOCK_SIZE)
    manager.initialize_memory_region(20 * BLOCK_SIZE, 5 * BLOCK_SIZE)
    assert manager.find_first_free_blocks(3) == 20
    assert manager.find_first_free_blocks(2) == 10


def test_run_can_cross_a_word_boundary():
    manager = make_manager()
    manager.deinitialize_memory_region(0, 128 * BLOCK_SIZE)
    manager.initialize_memory_region(30 * BLOCK_SIZE, 5 * BLOCK_SIZE)
    assert manager.allocate_blocks(4) == 30 * BLOCK_SIZE


def test_cannot_take_the_last_free_blocks():
    manager = make_manager(64)
    manager.deinitialize_memory_region(0, 64 * BLOCK_SIZE)
    manager.initialize_memory_region(5 * BLOCK_SIZE, 4 * BLOCK_SIZE)
    assert manager.free_count == 4
    with pytest.raises(OutOfMemoryError):
        manager.allocate_blocks(4)


def test_deinitialize_counts_used_blocks():
    manager = make_manager()
    before = manager.used_blocks
    manager.deinitialize_memory_region(8 * BLOCK_SIZE, 6 * BLOCK_SIZE)
    assert manager.used_blocks == before + 6
    assert all(manager.test_block(bit) for bit in range(8, 14))


def test_no_free_run_returns_none():
    manager = make_manager(64)
    manager.deinitialize_memory_region(0, 64 * BLOCK_SIZE)
    manager.initialize_memory_region(3 * BLOCK_SIZE, 2 * BLOCK_SIZE)
    assert manager.find_first_free_blocks(3) is None