"""Processes, threads and a first-in first-out scheduler."""

from __future__ import annotations

import enum
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from geckokern.paging import PAGE_SIZE, PageDirectory, PageTableFlags, VirtualMemoryManager
from geckokern.physical_mem import PhysicalMemoryManager

MAX_PROCESSES = 16
MAX_THREADS = 5
_INTERRUPTS_ENABLED = 0x200


class ProcessState(enum.IntEnum):
    INVALID = 0
    SLEEPING = 1
    ACTIVE = 2


@dataclass
class Registers:
    """CPU state saved for a thread."""

    ds: int = 0
    edi: int = 0
    esi: int = 0
    ebp: int = 0
    esp: int = 0
    ebx: int = 0
    edx: int = 0
    ecx: int = 0
    eax: int = 0
    int_no: int = 0
    err_code: int = 0
    eip: int = 0
    cs: int = 0
    eflags: int = 0
    useresp: int = 0
    ss: int = 0


@dataclass
class Thread:
    parent: Process | None = field(default=None, repr=False, compare=False)
    entry: Callable[[], Any] | None = field(default=None, repr=False, compare=False)
    stack: int = 0
    stack_limit: int = 0
    kernel_stack: int = 0
    priority: int = 1
    state: ProcessState = ProcessState.INVALID
    pgm_buf: int = 0
    pgm_size: int = 0
    regs: Registers = field(default_factory=Registers)


@dataclass
class Process:
    id: int
    priority: int = 1
    page_dir: PageDirectory | None = None
    state: ProcessState = ProcessState.INVALID
    threads: list[Thread] = field(default_factory=list)

    @property
    def thread_count(self) -> int:
        return len(self.threads)


class QueueFullError(Exception):
    """Raised when a process queue has no free slot."""


class ProcessQueue:
    """Ring buffer of processes; one slot stays empty, so it holds capacity - 1."""

    def __init__(self, capacity: int = MAX_PROCESSES) -> None:
        if capacity < 2:
            raise ValueError("queue capacity must be at least 2")
        self.capacity = capacity
        self._items: deque[Process] = deque()

    def enqueue(self, process: Process) -> None:
        if len(self._items) >= self.capacity - 1:
            raise QueueFullError(f"queue holds at most {self.capacity - 1} processes")
        self._items.append(process)

    def dequeue(self) -> Process | None:
        """Return the oldest process, or None if the queue is empty."""
        return self._items.popleft() if self._items else None

    def __len__(self) -> int:
        return len(self._items)


class Scheduler:
    """Creates processes with their own address space and runs them in order."""

    def __init__(self, vmm: VirtualMemoryManager, allocator: PhysicalMemoryManager) -> None:
        self.vmm = vmm
        self.allocator = allocator
        self.queue = ProcessQueue(MAX_PROCESSES)
        self.next_id = 0
        self.nr_processes = 0
        self.processes: dict[int, Process] = {}

    def create_process(self, entry_point: Callable[[], Any]) -> int:
        """Create a process with one thread, schedule it and return its id."""
        if not callable(entry_point):
            raise TypeError("entry point must be callable")
        address_space = self.vmm.new_address_space()
        self.next_id += 1
        proc = Process(
            id=self.next_id, priority=1, page_dir=address_space, state=ProcessState.ACTIVE
        )
        thread = Thread(
            parent=proc,
            entry=entry_point,
            stack=0,
            stack_limit=PAGE_SIZE,
            kernel_stack=0,
            priority=1,
            state=ProcessState.ACTIVE,
        )
        thread.regs.eflags = _INTERRUPTS_ENABLED

        flags = PageTableFlags.PRESENT | PageTableFlags.READ_AND_WRITE
        stack = thread.pgm_buf + thread.pgm_size + PAGE_SIZE
        self.vmm.map_address(address_space, self.allocator.allocate_blocks(1), stack, flags)
        args = stack + PAGE_SIZE
        self.vmm.map_address(address_space, self.allocator.allocate_blocks(1), args, flags)

        thread.regs.esp = thread.stack
        thread.regs.ebp = thread.regs.esp
        proc.threads.append(thread)

        self.nr_processes += 1
        self.processes[proc.id] = proc
        try:
            self.queue.enqueue(proc)
        except QueueFullError:
            pass  # a process that finds the run queue full is simply not scheduled

        self.switch_task()
        return proc.id

    def execute_process(self, proc: Process) -> Any:
        """Switch to the process's address space and run its main thread."""
        if not proc.id or proc.page_dir is None or not proc.threads:
            return None
        thread = proc.threads[0]
        self.vmm.set_page_directory(proc.page_dir)
        if thread.entry is None:
            return None
        return thread.entry()

    def switch_task(self) -> Process | None:
        """Run the next queued process; return it, or None if none was waiting."""
        proc = self.queue.dequeue()
        if proc is None:
            return None
        self.execute_process(proc)
        return proc