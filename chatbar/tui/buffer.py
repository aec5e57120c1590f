"""Ordered line store backing the tree view.

The buffer is the tree's only state: a node's subtree is the contiguous run of
lines right after it whose depth is greater than the node's depth.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

from chatbar.store.models import SessionRef
from chatbar.tui.errors import TreeIntegrityError
from chatbar.tui.render import TreeLine
from chatbar.tui.types import ExpandState


class TreeBuffer:
    def __init__(self, lines: Iterable[TreeLine] = ()) -> None:
        self._lines: list[TreeLine] = list(lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index: int) -> TreeLine:
        return self._lines[index]

    def __iter__(self) -> Iterator[TreeLine]:
        return iter(self._lines)

    @property
    def lines(self) -> list[TreeLine]:
        return list(self._lines)

    def reset(self, lines: Iterable[TreeLine]) -> None:
        self._lines = list(lines)

    def block_end(self, index: int) -> int:
        """Index one past the last line of the subtree under `index`."""
        depth = self._lines[index].depth
        end = index + 1
        while end < len(self._lines) and self._lines[end].depth > depth:
            end += 1
        return end

    def insert_children(self, index: int, children: list[TreeLine]) -> None:
        """Insert direct children right below `index`."""
        parent_depth = self._lines[index].depth
        for child in children:
            if child.depth != parent_depth + 1:
                raise TreeIntegrityError(
                    f"Child '{child.label}' has depth {child.depth}, expected {parent_depth + 1}"
                )
        if self.block_end(index) != index + 1:
            raise TreeIntegrityError(f"Line {index} ('{self._lines[index].label}') already has a subtree")
        self._lines[index + 1 : index + 1] = children

    def insert_line(self, index: int, line: TreeLine) -> None:
        """Insert one childless line at `index`, between two existing blocks."""
        if not 0 <= index <= len(self._lines):
            raise TreeIntegrityError(f"Cannot insert '{line.label}' at line {index}")
        if index == 0 and line.depth != 0:
            raise TreeIntegrityError(f"First line must be top-level, got depth {line.depth}")
        if index > 0:
            above = self._lines[index - 1]
            if line.depth > above.depth + 1 or (
                line.depth == above.depth + 1 and above.state is not ExpandState.EXPANDED
            ):
                raise TreeIntegrityError(f"'{line.label}' cannot sit under '{above.label}'")
        if index < len(self._lines) and self._lines[index].depth > line.depth:
            raise TreeIntegrityError(f"Inserting '{line.label}' at line {index} would split a subtree")
        self._lines.insert(index, line)

    def delete_subblock(self, index: int) -> int:
        """Delete the subtree under `index`, keeping the line itself. Returns lines removed."""
        end = self.block_end(index)
        removed = end - index - 1
        del self._lines[index + 1 : end]
        return removed

    def remove_block(self, index: int) -> int:
        """Delete the line at `index` together with its subtree."""
        end = self.block_end(index)
        del self._lines[index:end]
        return end - index

    def replace_line(self, index: int, line: TreeLine) -> None:
        if line.depth != self._lines[index].depth:
            raise TreeIntegrityError(
                f"Replacement for line {index} changes depth {self._lines[index].depth} -> {line.depth}"
            )
        self._lines[index] = line

    def append(self, line: TreeLine) -> int:
        if line.depth != 0:
            raise TreeIntegrityError(f"Only top-level lines can be appended, got depth {line.depth}")
        self._lines.append(line)
        return len(self._lines) - 1

    def find(self, predicate: Callable[[TreeLine], bool]) -> int | None:
        for index, line in enumerate(self._lines):
            if predicate(line):
                return index
        return None

    def find_ref(self, ref: SessionRef) -> int | None:
        """Index of the server/channel/query line standing for `ref`."""
        return self.find(lambda line: line.token.ref == ref)

    def visible_indices(self) -> list[int]:
        return [index for index, line in enumerate(self._lines) if line.visible]

    def check_integrity(self) -> None:
        """Raise TreeIntegrityError if any line breaks the depth invariants."""
        previous: TreeLine | None = None
        for index, line in enumerate(self._lines):
            if previous is None:
                if line.depth != 0:
                    raise TreeIntegrityError(f"First line has depth {line.depth}")
            elif line.depth > previous.depth:
                if line.depth != previous.depth + 1:
                    raise TreeIntegrityError(f"Line {index} jumps from depth {previous.depth} to {line.depth}")
                if previous.state is not ExpandState.EXPANDED:
                    raise TreeIntegrityError(
                        f"Line {index} sits under '{previous.label}' which is {previous.state.value}"
                    )
            previous = line
