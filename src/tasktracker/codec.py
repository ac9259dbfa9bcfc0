"""Task file codec.

Reads and writes the task file format: one top-level object holding
``version``, ``next_id`` and a ``tasks`` array of flat task objects. This
is a deliberately small dialect, not general JSON. Nesting stops at the
task array, and values are either quoted strings or bare tokens.

Encoding is deterministic: the same store always produces the same
text, with fields in a fixed order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from tasktracker.errors import Err, JsonError, JsonResult, Ok, Result
from tasktracker.models import (
    Task,
    TaskStatus,
    is_valid_priority,
    validate_description,
    validate_title,
)
from tasktracker.store import TaskStore

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"
DEFAULT_TASKS_FILE = Path("tasks.json")

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

_SIMPLE_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_SIMPLE_UNESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_BARE_TERMINATORS = ",}]\n\r"
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_HIGH_SURROGATES = (0xD800, 0xDBFF)
_LOW_SURROGATES = (0xDC00, 0xDFFF)


@dataclass
class Snapshot:
    """Decoded contents of a task file, not yet applied to a store."""

    version: str = FORMAT_VERSION
    next_id: int = 1
    tasks: list[Task] = field(default_factory=list)


class _FormatError(Exception):
    """Raised by the scanner when the text does not fit the dialect."""


# -- strings and timestamps --------------------------------------------


def escape_string(text: str) -> str:
    """Escape a string for a quoted value.

    Control characters without a short escape become ``\\u00XX``;
    everything from 0x20 up, non-ASCII included, passes through.
    """
    parts = []
    for char in text:
        if char in _SIMPLE_ESCAPES:
            parts.append(_SIMPLE_ESCAPES[char])
        elif ord(char) < 0x20:
            parts.append(f"\\u{ord(char):04x}")
        else:
            parts.append(char)
    return "".join(parts)


def unescape_string(text: str) -> str:
    """Reverse ``escape_string``.

    An unknown escape yields the character after the backslash. A
    ``\\uD83C\\uDF89`` surrogate pair becomes one character; an unpaired
    surrogate is kept as is and left for the caller to reject.
    """
    parts = []
    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        if char != "\\" or i + 1 >= length:
            parts.append(char)
            i += 1
            continue

        marker = text[i + 1]
        if marker in _SIMPLE_UNESCAPES:
            parts.append(_SIMPLE_UNESCAPES[marker])
            i += 2
        elif marker == "u" and _is_hex(text[i + 2 : i + 6]):
            code = int(text[i + 2 : i + 6], 16)
            i += 6
            if _HIGH_SURROGATES[0] <= code <= _HIGH_SURROGATES[1]:
                low = _low_surrogate_at(text, i)
                if low is not None:
                    code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                    i += 6
            parts.append(chr(code))
        else:
            parts.append(marker)
            i += 2
    return "".join(parts)


def _is_hex(chunk: str) -> bool:
    return len(chunk) == 4 and all(c in _HEX_DIGITS for c in chunk)


def _low_surrogate_at(text: str, pos: int) -> int | None:
    """Code of a ``\\uDC00``-``\\uDFFF`` escape starting at ``pos``, if any."""
    if text[pos : pos + 2] != "\\u" or not _is_hex(text[pos + 2 : pos + 6]):
        return None
    code = int(text[pos + 2 : pos + 6], 16)
    return code if _LOW_SURROGATES[0] <= code <= _LOW_SURROGATES[1] else None


def has_lone_surrogate(text: str) -> bool:
    """True if ``text`` holds a surrogate code point, which UTF-8 cannot store."""
    return any(0xD800 <= ord(char) <= 0xDFFF for char in text)


def format_timestamp(moment: datetime) -> str:
    """Local time with milliseconds and no zone suffix."""
    return f"{moment.strftime(TIMESTAMP_FORMAT)}.{moment.microsecond // 1000:03d}"


def parse_timestamp(text: str) -> datetime:
    """Parse ``format_timestamp`` output. Raises ValueError on bad input."""
    text = text.strip()
    base, _, fraction = text.partition(".")
    moment = datetime.strptime(base, TIMESTAMP_FORMAT)
    if fraction:
        millis = fraction[:3]
        if not millis.isdigit():
            raise ValueError(f"Bad milliseconds in timestamp: {text!r}")
        moment = moment.replace(microsecond=int(millis.ljust(3, "0")) * 1000)
    return moment


# -- encoding ------------------------------------------------------------


def encode_task(task: Task) -> str:
    """Encode one task as a standalone object."""
    fields = [
        f'  "id": {task.id}',
        f'  "title": "{escape_string(task.title)}"',
        f'  "description": "{escape_string(task.description)}"',
        f'  "status": "{task.status.value}"',
        f'  "category": "{escape_string(task.category)}"',
        f'  "priority": {task.priority}',
        f'  "created_at": "{format_timestamp(task.created_at)}"',
        f'  "updated_at": "{format_timestamp(task.updated_at)}"',
    ]
    if task.completed_at is not None:
        fields.append(f'  "completed_at": "{format_timestamp(task.completed_at)}"')
    return "{\n" + ",\n".join(fields) + "\n}"


def encode_store(store: TaskStore) -> str:
    """Encode the whole store, counter included."""
    lines = [
        "{",
        f'  "version": "{FORMAT_VERSION}",',
        f'  "next_id": {store.next_id},',
        '  "tasks": [',
    ]
    encoded = [_indent(encode_task(task), "    ") for task in store]
    if encoded:
        lines.append(",\n".join(encoded))
    lines.append("  ]")
    lines.append("}")
    return "\n".join(lines) + "\n"


def _indent(block: str, prefix: str) -> str:
    return "\n".join(prefix + line for line in block.split("\n"))


# -- decoding ------------------------------------------------------------


class _Scanner:
    """Single-pass reader for the task file dialect.

    State is the cursor position plus whatever container, key and value
    buffer the current method is filling. Quoted strings are consumed
    whole, so braces and brackets inside them never affect structure.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _expect(self, char: str) -> None:
        self._skip_whitespace()
        if self._peek() != char:
            found = self._peek() or "end of input"
            raise _FormatError(f"Expected {char!r} at offset {self.pos}, found {found!r}")
        self.pos += 1

    def read_document(self) -> dict[str, object]:
        document = self._read_object(allow_task_array=True)
        self._skip_whitespace()
        if self.pos != len(self.text):
            raise _FormatError(f"Unexpected trailing content at offset {self.pos}")
        return document

    def _read_object(self, allow_task_array: bool) -> dict[str, object]:
        self._expect("{")
        values: dict[str, object] = {}
        self._skip_whitespace()
        if self._peek() == "}":
            self.pos += 1
            return values

        while True:
            self._skip_whitespace()
            if self._peek() != '"':
                raise _FormatError(f"Expected a key at offset {self.pos}")
            key = self._read_string()
            self._expect(":")
            self._skip_whitespace()

            char = self._peek()
            if char == '"':
                values[key] = self._read_string()
            elif char == "[":
                if not (allow_task_array and key == "tasks"):
                    raise _FormatError(f"Unexpected array for key {key!r}")
                values[key] = self._read_task_array()
            elif char == "{":
                raise _FormatError(f"Unexpected nested object for key {key!r}")
            else:
                values[key] = self._read_bare()

            self._skip_whitespace()
            char = self._peek()
            if char == ",":
                self.pos += 1
            elif char == "}":
                self.pos += 1
                return values
            else:
                raise _FormatError(f"Expected ',' or '}}' at offset {self.pos}")

    def _read_task_array(self) -> list[dict[str, object]]:
        self._expect("[")
        items: list[dict[str, object]] = []
        self._skip_whitespace()
        if self._peek() == "]":
            self.pos += 1
            return items

        while True:
            items.append(self._read_object(allow_task_array=False))
            self._skip_whitespace()
            char = self._peek()
            if char == ",":
                self.pos += 1
            elif char == "]":
                self.pos += 1
                return items
            else:
                raise _FormatError(f"Expected ',' or ']' at offset {self.pos}")

    def _read_string(self) -> str:
        """Read a quoted string, honouring backslash escapes."""
        self.pos += 1  # opening quote
        buffer = []
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == "\\" and self.pos + 1 < len(self.text):
                buffer.append(self.text[self.pos : self.pos + 2])
                self.pos += 2
                continue
            if char == '"':
                self.pos += 1
                value = unescape_string("".join(buffer))
                if has_lone_surrogate(value):
                    raise _FormatError("Unpaired surrogate escape in string")
                return value
            buffer.append(char)
            self.pos += 1
        raise _FormatError("Unterminated string")

    def _read_bare(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in _BARE_TERMINATORS:
            self.pos += 1
        value = self.text[start : self.pos].strip()
        if not value:
            raise _FormatError(f"Missing value at offset {start}")
        return value


def _decode_task(values: dict[str, object]) -> Result[Task, JsonError]:
    """Build a task from one decoded object.

    Raises ValueError when a number or timestamp does not convert.
    """
    raw_id = values.get("id")
    title = values.get("title")
    if not isinstance(raw_id, str) or not isinstance(title, str):
        return Err(JsonError.INVALID_FORMAT)
    title = title.strip()
    if not title:
        return Err(JsonError.INVALID_FORMAT)

    status = TaskStatus.parse(str(values.get("status", "")))
    if status is None:
        return Err(JsonError.INVALID_FORMAT)

    description = str(values.get("description", ""))
    if validate_title(title) is not None or validate_description(description) is not None:
        return Err(JsonError.INVALID_FORMAT)

    task_id = int(raw_id)
    priority = int(str(values.get("priority", "0")))
    if task_id < 1 or not is_valid_priority(priority):
        return Err(JsonError.INVALID_FORMAT)

    created_raw = values.get("created_at")
    created_at = parse_timestamp(str(created_raw)) if created_raw else None
    task = Task(
        id=task_id,
        title=title,
        description=description,
        status=status,
        category=str(values.get("category", "General")),
        priority=priority,
    )
    if created_at is not None:
        task.created_at = created_at
    updated_raw = values.get("updated_at")
    updated_at = parse_timestamp(str(updated_raw)) if updated_raw else task.created_at
    task.updated_at = max(updated_at, task.created_at)
    completed_raw = values.get("completed_at")
    if completed_raw:
        task.completed_at = parse_timestamp(str(completed_raw))
    return Ok(task)


def decode_document(text: str) -> Result[Snapshot, JsonError]:
    """Decode task file text into a ``Snapshot``."""
    try:
        document = _Scanner(text).read_document()
    except _FormatError as exc:
        logger.warning("Task file rejected: %s", exc)
        return Err(JsonError.INVALID_FORMAT)

    raw_tasks = document.get("tasks")
    if not isinstance(raw_tasks, list):
        return Err(JsonError.INVALID_FORMAT)

    version = str(document.get("version", FORMAT_VERSION))
    if version != FORMAT_VERSION:
        logger.warning("Unknown task file version %r, reading as %s", version, FORMAT_VERSION)

    tasks: list[Task] = []
    seen_ids: set[int] = set()
    seen_titles: set[str] = set()
    try:
        next_id_raw = document.get("next_id")
        next_id = int(str(next_id_raw)) if next_id_raw is not None else 1
        for values in raw_tasks:
            result = _decode_task(values)
            if isinstance(result, Err):
                return result
            task = result.value
            if task.id in seen_ids or task.title in seen_titles:
                return Err(JsonError.INVALID_FORMAT)
            seen_ids.add(task.id)
            seen_titles.add(task.title)
            tasks.append(task)
    except ValueError as exc:
        logger.warning("Task file value did not convert: %s", exc)
        return Err(JsonError.PARSE_ERROR)

    highest = max(seen_ids, default=0)
    return Ok(Snapshot(version=version, next_id=max(next_id, highest + 1), tasks=tasks))


def decode_store(store: TaskStore, text: str) -> JsonResult:
    """Replace the store's contents with the decoded text.

    The store is only touched once the whole text has decoded.
    """
    result = decode_document(text)
    if isinstance(result, Err):
        return result
    store.replace_contents(result.value.tasks, result.value.next_id)
    return Ok(True)


# -- files -----------------------------------------------------------------


def _read_text(path: Path) -> Result[str, JsonError]:
    try:
        with open(path, encoding="utf-8") as f:
            return Ok(f.read())
    except FileNotFoundError:
        return Err(JsonError.FILE_NOT_FOUND)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return Err(JsonError.PARSE_ERROR)


def read_document(path: Path | None = None) -> Result[Snapshot, JsonError]:
    """Decode a task file without applying it to a store."""
    if path is None:
        path = DEFAULT_TASKS_FILE
    text = _read_text(path)
    if isinstance(text, Err):
        return text
    return decode_document(text.value)


def save_store(store: TaskStore, path: Path | None = None) -> JsonResult:
    """Write the store to ``path`` (default ``tasks.json``).

    The text goes to a sibling ``.tmp`` file that then replaces ``path``,
    so a failed save leaves the previous file intact.
    """
    if path is None:
        path = DEFAULT_TASKS_FILE

    try:
        data = encode_store(store).encode("utf-8")
    except UnicodeEncodeError as exc:
        logger.warning("Cannot save to %s: %s", path, exc)
        return Err(JsonError.WRITE_ERROR)

    temp_path = path.with_name(path.name + ".tmp")
    try:
        with open(temp_path, "wb") as f:
            f.write(data)
        temp_path.replace(path)
    except FileNotFoundError:
        logger.warning("Cannot save to %s: directory does not exist", path)
        return Err(JsonError.FILE_NOT_FOUND)
    except OSError as exc:
        logger.warning("Cannot save to %s: %s", path, exc)
        temp_path.unlink(missing_ok=True)
        return Err(JsonError.WRITE_ERROR)

    logger.info("Saved %d task(s) to %s", len(store), path)
    return Ok(True)


def load_store(store: TaskStore, path: Path | None = None) -> JsonResult:
    """Replace the store's contents with the file at ``path``."""
    if path is None:
        path = DEFAULT_TASKS_FILE

    text = _read_text(path)
    if isinstance(text, Err):
        return text
    result = decode_store(store, text.value)
    if isinstance(result, Ok):
        logger.info("Loaded %d task(s) from %s", len(store), path)
    return result
