#!/usr/bin/env python3
"""
Hierarchy Sort Demo
===================

Creates ten entities, links four of them, runs one maintenance pass and
prints every entity of the hierarchy in parent-before-child order.

Usage:
    python sort_demo.py
"""

from typing import List

from hierarchy import EntityAllocator, HierarchySystem, ParentStorage


def run_demo() -> List[str]:
    allocator = EntityAllocator()
    storage = ParentStorage(allocator=allocator)
    e = allocator.create_many(10)

    storage.set_parent(e[1], e[5])
    storage.set_parent(e[3], e[1])
    storage.set_parent(e[4], e[5])
    storage.set_parent(e[5], e[2])

    system = HierarchySystem(storage.log, is_alive=allocator.is_alive)
    system.run_pass()

    lines = []
    for entity in system.all_in_order():
        parent = system.parent(entity)
        lines.append(f"{entity}: {parent if parent is not None else 'None'}")
    return lines


def main():
    for line in run_demo():
        print(line)


if __name__ == "__main__":
    main()
