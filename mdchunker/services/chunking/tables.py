"""Pipe-table analysis: shape, alignments, cell types, and well-formedness."""

import re
from dataclasses import dataclass, field

_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_DELIMITER_CELL_RE = re.compile(r"^:?-+:?$")

_CELL_TYPE_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("integer", re.compile(r"^-?\d+$")),
    ("decimal", re.compile(r"^-?\d+\.\d+$")),
    ("date", re.compile(r"^\d{4}-\d{2}-\d{2}$")),
    ("url", re.compile(r"^https?://")),
    ("email", re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")),
]
_BOOLEAN_WORDS = frozenset({"true", "false", "yes", "no"})


@dataclass
class TableInfo:
    """Result of analyzing one table's raw source."""

    header: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    alignments: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def row_count(self) -> int:
        """Header plus body rows; the delimiter row is not counted."""
        return len(self.rows) + (1 if self.header else 0)

    @property
    def is_well_formed(self) -> bool:
        return not self.errors

    def cell_type_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for cell in [*self.header, *(c for row in self.rows for c in row)]:
            kind = detect_cell_type(cell)
            counts[kind] = counts.get(kind, 0) + 1
        return counts

    def metadata(self) -> dict[str, str]:
        """Flat string metadata for the table's chunk."""
        meta = {
            "row_count": str(self.row_count),
            "column_count": str(self.column_count),
            "is_well_formed": str(self.is_well_formed).lower(),
        }
        if self.alignments:
            meta["alignments"] = ",".join(self.alignments)
        if self.errors:
            meta["errors"] = "; ".join(self.errors)
        counts = self.cell_type_counts()
        if counts:
            meta["cell_types"] = ",".join(f"{k}:{counts[k]}" for k in sorted(counts))
        return meta


def split_table_row(row: str) -> list[str]:
    """Split a pipe-table row into stripped cells. Escaped pipes stay inside cells."""
    row = row.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return [cell.strip() for cell in _CELL_SPLIT_RE.split(row)]


def detect_cell_type(content: str) -> str:
    """Classify a cell as empty, integer, decimal, date, url, email, boolean or text."""
    content = content.strip()
    if not content:
        return "empty"
    for name, pattern in _CELL_TYPE_PATTERNS:
        if pattern.match(content):
            return name
    if content.lower() in _BOOLEAN_WORDS:
        return "boolean"
    return "text"


def _alignment(cell: str) -> str:
    if cell.startswith(":") and cell.endswith(":"):
        return "center"
    if cell.endswith(":"):
        return "right"
    return "left"


def analyze_table(raw_content: str) -> TableInfo:
    """
    Analyze a pipe table. Rows whose cell count differs from the header are reported
    in `errors`; the table is then not well formed.
    """
    info = TableInfo()
    lines = [line for line in raw_content.split("\n") if line.strip()]
    if len(lines) < 2:
        info.errors.append("Table has no delimiter row")
        if lines:
            info.header = split_table_row(lines[0])
        return info

    info.header = split_table_row(lines[0])
    delimiter = split_table_row(lines[1])
    if not all(_DELIMITER_CELL_RE.match(c) for c in delimiter):
        info.errors.append("Delimiter row is malformed")
    info.alignments = [_alignment(c) for c in delimiter]
    if len(delimiter) != info.column_count:
        info.errors.append(
            f"Alignment specification has {len(delimiter)} entries but table has {info.column_count} columns"
        )

    for index, line in enumerate(lines[2:], start=3):
        cells = split_table_row(line)
        info.rows.append(cells)
        if len(cells) != info.column_count:
            info.errors.append(f"Row {index} has {len(cells)} columns, expected {info.column_count}")
    return info
