"""
Tabular parser for uploaded agent log datasets

Turns comma separated text into Row records. Column roles are resolved from
the header by substring match, so "User Query", "query_text" and "问题" all
map to the query column.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from agenteval.utils.log import logger
from .errors import ParseError
from .types import Row

COLUMN_ALIASES: Dict[str, Sequence[str]] = {
    "query": ("query", "问题"),
    "log": ("log", "日志"),
    "tool": ("tool", "工具"),
}

_LINE_BREAK = re.compile(r"[\r\n]+")


def split_line(line: str) -> List[str]:
    """
    Split one line into trimmed fields.

    A double quote toggles quoting and is dropped, so '"d""e"' yields 'de'.
    """
    fields = []
    current = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    fields.append("".join(current).strip())
    return fields


def resolve_columns(header: List[str]) -> Dict[str, Optional[int]]:
    """Map each role to the index of the first header column that mentions it"""
    lowered = [name.lower() for name in header]
    columns: Dict[str, Optional[int]] = {}
    for role, aliases in COLUMN_ALIASES.items():
        columns[role] = next(
            (i for i, name in enumerate(lowered) if any(alias in name for alias in aliases)),
            None,
        )
    return columns


def parse(text: str) -> List[Row]:
    """
    Parse CSV text into rows.

    Args:
        text: Raw file contents, first non-empty line is the header

    Returns:
        Rows with a non-empty query, in file order. Empty when there is no
        data line.

    Raises:
        ParseError: If no header column looks like a query column
    """
    lines = [line for line in _LINE_BREAK.split(text.lstrip("\ufeff")) if line.strip()]
    if len(lines) < 2:
        logger.warning("Dataset has no data rows")
        return []

    columns = resolve_columns(split_line(lines[0]))
    if columns["query"] is None:
        raise ParseError("Missing required column: query")

    def pick(fields: List[str], role: str) -> str:
        index = columns[role]
        if index is None or index >= len(fields):
            return ""
        return fields[index]

    rows = []
    for line in lines[1:]:
        fields = split_line(line)
        query = pick(fields, "query")
        if not query:
            continue
        rows.append(Row(query=query, log=pick(fields, "log"), tool=pick(fields, "tool")))

    logger.debug(f"Parsed {len(rows)} rows from {len(lines) - 1} data lines, columns: {columns}")
    return rows


def parse_file(path: Union[str, Path]) -> List[Row]:
    with open(path, "r", encoding="utf-8-sig") as f:
        return parse(f.read())
