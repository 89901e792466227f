"""
Elastic tabstop writer, the same layout Go's text/tabwriter produces.

Text is cut into tab-terminated cells. Adjacent lines that have a cell in
the same column form a column block, and every cell of the block is padded
to the block's widest cell. The text after the last tab of a line belongs
to no column and is written as-is.
"""
import re
from typing import List, TextIO

_RE_CELL_BREAK = re.compile(r"([\t\n])")


class TabWriter:
    def __init__(self, output: TextIO, minwidth: int = 18, tabwidth: int = 8, padding: int = 1):
        self.output = output
        self.minwidth = minwidth
        self.tabwidth = tabwidth
        self.padding = padding
        self._reset()

    def _reset(self):
        self._lines: List[List[str]] = [[]]
        self._cell = ""

    def write(self, text: str) -> None:
        for chunk in _RE_CELL_BREAK.split(text):
            if chunk == "\t":
                self._lines[-1].append(self._cell)
                self._cell = ""
            elif chunk == "\n":
                line = self._lines[-1]
                line.append(self._cell)
                self._cell = ""
                self._lines.append([])
                # A single-cell line closes every open column block.
                if len(line) == 1:
                    self._flush_lines()
            else:
                self._cell += chunk

    def flush(self) -> None:
        """Writes out everything buffered. Must be called after the last write."""
        self._flush_lines()
        self.output.flush()

    def _flush_lines(self):
        if self._cell:
            self._lines[-1].append(self._cell)
            self._cell = ""
        out: List[str] = []
        self._format(out, [], 0, len(self._lines))
        self.output.write("".join(out))
        self._reset()

    def _format(self, out: List[str], widths: List[int], line0: int, line1: int):
        column = len(widths)
        this = line0
        while this < line1:
            if column >= len(self._lines[this]) - 1:
                this += 1
                continue

            # Lines before the block have no cell in this column.
            self._write_lines(out, widths, line0, this)
            line0 = this

            width = self.minwidth
            while this < line1 and column < len(self._lines[this]) - 1:
                width = max(width, len(self._lines[this][column]) + self.padding)
                this += 1

            self._format(out, widths + [width], line0, this)
            line0 = this

        self._write_lines(out, widths, line0, line1)

    def _write_lines(self, out: List[str], widths: List[int], line0: int, line1: int):
        for i in range(line0, line1):
            line = self._lines[i]
            for j, cell in enumerate(line):
                out.append(cell)
                if j < len(widths):
                    out.append(self._padding(len(cell), widths[j]))
            # The last buffered line is still open.
            if i + 1 < len(self._lines):
                out.append("\n")

    def _padding(self, textw: int, cellw: int) -> str:
        if self.tabwidth == 0:
            return ""
        cellw = (cellw + self.tabwidth - 1) // self.tabwidth * self.tabwidth
        n = cellw - textw
        return "\t" * ((n + self.tabwidth - 1) // self.tabwidth)
