"""Simulated hobby-kernel subsystems: physical memory, paging, users, Multiboot2 boot info, processes, printf and a VGA text terminal."""

__version__ = "0.1.0"