# geckokern

The core subsystems of a small 32-bit hobby kernel, modelled in plain Python so
they can be inspected, tested and experimented with without booting anything.

## What is inside

| Module | What it models |
| --- | --- |
| `geckokern.physical_mem` | A bitmap allocator handing out 4 KiB physical blocks (`PhysicalMemoryManager`). Running out raises `OutOfMemoryError`. |
| `geckokern.paging` | Two-level x86 page directories and tables (`PageDirectory`, `PageTable`), the `PageTableFlags` and `PageDirFlags` enums, `pd_index`, `pt_index`, `frame_address`, and a `VirtualMemoryManager` that maps, unmaps and resolves addresses using blocks from a `PhysicalMemoryManager`. |
| `geckokern.users` | A table of up to eight users with rings (`Ring`) and permission bits (`Permission`): `UserSystem` with `login`, `logout`, `su`, `add`, `delete`, `passwd`, `has_perm` and `list_users`. Refused operations raise `UserError`. The table starts with `root` (admin) and `guest` (user). |
| `geckokern.multiboot2` | `check_bootloader_magic`, `iter_tags` and `parse_boot_info` for the Multiboot2 boot information structure: command line, boot loader name, basic memory info, memory map, framebuffer and ACPI RSDP. Malformed data raises `BootInfoError`. |
| `geckokern.process` | `Process`, `Thread` and `Registers`, a bounded FIFO `ProcessQueue` (full queues raise `QueueFullError`) and a `Scheduler` whose `create_process` gives each process its own address space and then runs the next queued process. Entry points are Python callables. |
| `geckokern.formatspec` | `parse_format_spec`, turning one printf conversion specification into a `FormatSpec`. |
| `geckokern.convert` | `convert` and `render` for one argument of a `FormatSpec`, plus `utoa`. Integers are treated as 32-bit values. |
| `geckokern.printf` | `pprintf`, `format_string` and `snprintf` built on the two modules above. |
| `geckokern.terminal` | A VGA text `Screen` (80×25 by default), `vga_entry` and `vga_entry_color`, and a `Terminal` with wrapping, scrolling, `printf`, history-aware line `input` and a mouse pointer (`draw_cursor`, `on_mouse_event`). |

The printf family understands the flags `-`, `0`, `+` and space, field width
and precision (literal or `*`), the `l` length modifier and the conversions
`% c s d i o u x X p`. Alternate form (`#`), floating point and other
conversions are not recognised; such a `%` is printed as it stands.

The package has no runtime dependencies.

## Examples

Allocating physical memory:

```python
from geckokern.physical_mem import PhysicalMemoryManager

pmm = PhysicalMemoryManager(0x10000, 16 * 1024 * 1024)
pmm.initialize_memory_region(0x100000, 4 * 1024 * 1024)
address = pmm.allocate_blocks(2)      # 0x100000
pmm.free_blocks(address, 2)
```

Formatting text:

```python
from geckokern.printf import format_string, snprintf

format_string("%5d|%-4s|", 42, "ab")   # '   42|ab  |'
snprintf(4, "%x", 0xBEEF)              # ('bee', 4)
```

Writing to a simulated VGA screen:

```python
from geckokern.terminal import Screen, Terminal, VgaColor

screen = Screen(80, 25)
term = Terminal(screen)
term.printc("hello\n", VgaColor.WHITE)
screen.text_row(0)   # 'hello' followed by spaces to the row width
line = term.input(["l", "s", "\n"])   # 'ls', echoed on row 1 and kept in history
```

Reading a Multiboot2 information block:

```python
import struct
from geckokern.multiboot2 import parse_boot_info

data = (
    struct.pack("<II", 32, 0)
    + struct.pack("<II", 1, 14) + b"quiet\0" + b"\0\0"
    + struct.pack("<II", 0, 8)
)
parse_boot_info(data).cmdline   # 'quiet'
```

## What it does not do

geckokern is a library of models, not a bootable kernel. It has no command
line program, does not touch real hardware, I/O ports or memory, and has no
keyboard or mouse drivers: line input takes its keys from any iterable, and
mouse movement arrives as `MouseEvent` values. There is no shell, file system
or scripting language, and the scheduler runs each process to completion
rather than switching between them.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.