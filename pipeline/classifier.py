"""pipeline.classifier

Pattern-based instruction classification for assembly listings.

Why this exists
---------------
Counting loads, stores and capability bounds operations used to be a handful of
``grep -c`` patterns inlined into report scripts, one set per architecture.
Here those patterns are *data*: each architecture gets a :class:`RuleTable`
(an ordered list of ``(predicate, category)`` rules plus a residual category),
loaded from configuration. Supporting a new toolchain means adding a table,
not changing the parser.

Listing formats
---------------
Two text formats are accepted:

* compiler ``-S`` output: directives (``.text``), labels (``main:``),
  ``#`` comments and one instruction per line
* ``objdump -d`` output: ``<addr>: <encoding> <mnemonic> <operands>`` lines,
  with function headers (``0000000000010074 <main>:``) and section banners

The format is sniffed from the first lines of the file unless the table pins
it.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Pattern, Tuple, Union

from archbench.domain import (
    CategoryCounts,
    InstructionCategory,
    InstructionRecord,
    ParseError,
    empty_counts,
)

logger = logging.getLogger(__name__)

PREDICATE_KINDS = ("exact", "prefix", "contains", "regex")
LISTING_FORMATS = ("auto", "asm", "objdump")

_ADDR_RE = re.compile(r"^\s*[0-9a-fA-F]+:\t(?P<rest>.*)$")
_HEX_BYTES_RE = re.compile(r"^(?:[0-9a-fA-F]{2,8})(?:\s+[0-9a-fA-F]{2,8})*$")
_OBJDUMP_MARKERS = ("Disassembly of section", "file format")
_SNIFF_LINES = 50


@dataclass(frozen=True)
class ClassificationRule:
    """One ``(match-predicate, category)`` pair.

    ``kind`` is one of ``exact`` (set membership), ``prefix``, ``contains`` or
    ``regex`` (``re.search`` against the lower-cased mnemonic).
    """

    category: InstructionCategory
    kind: str
    pattern: Union[str, FrozenSet[str]]
    _regex: Optional[Pattern[str]] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.kind not in PREDICATE_KINDS:
            raise ValueError(f"unknown rule predicate {self.kind!r} (expected one of {', '.join(PREDICATE_KINDS)})")
        if self.kind == "regex":
            object.__setattr__(self, "_regex", re.compile(str(self.pattern)))

    def matches(self, mnemonic: str) -> bool:
        if self.kind == "exact":
            return mnemonic in self.pattern
        if self.kind == "prefix":
            return mnemonic.startswith(str(self.pattern))
        if self.kind == "contains":
            return str(self.pattern) in mnemonic
        assert self._regex is not None
        return self._regex.search(mnemonic) is not None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ClassificationRule":
        if not isinstance(raw, Mapping):
            raise ValueError(f"rule must be a mapping, got {type(raw).__name__}")

        category = InstructionCategory.parse(str(raw.get("category") or ""))
        kinds = [k for k in raw.keys() if k != "category"]
        if len(kinds) != 1:
            raise ValueError(f"rule must have exactly one predicate besides 'category', got {sorted(kinds)}")
        kind = str(kinds[0])
        value = raw[kind]

        if kind == "exact":
            if isinstance(value, str):
                value = [value]
            pattern: Union[str, FrozenSet[str]] = frozenset(str(v).strip().lower() for v in (value or []))
        else:
            pattern = str(value or "").strip()
            if kind != "regex":
                pattern = pattern.lower()
            if not pattern:
                raise ValueError(f"empty {kind!r} pattern")

        try:
            return cls(category=category, kind=kind, pattern=pattern)
        except re.error as e:
            raise ValueError(f"invalid regex {pattern!r}: {e}") from e

    def to_dict(self) -> dict:
        value: Any = sorted(self.pattern) if self.kind == "exact" else self.pattern
        return {"category": self.category.value, self.kind: value}


@dataclass(frozen=True)
class RuleTable:
    """Ordered classification rules for one architecture; first match wins."""

    name: str
    rules: Tuple[ClassificationRule, ...]
    default: InstructionCategory = InstructionCategory.OTHER
    comment_markers: Tuple[str, ...] = ("#", "//")
    listing_format: str = "auto"

    def categorize(self, mnemonic: str) -> InstructionCategory:
        m = mnemonic.lower()
        for rule in self.rules:
            if rule.matches(m):
                return rule.category
        return self.default

    @classmethod
    def from_dict(cls, name: str, raw: Mapping[str, Any]) -> "RuleTable":
        if not isinstance(raw, Mapping):
            raise ValueError(f"rule table {name!r} must be a mapping")

        raw_rules = raw.get("rules") or []
        if not isinstance(raw_rules, list):
            raise ValueError(f"rule table {name!r}: rules must be a list")

        rules: List[ClassificationRule] = []
        for i, r in enumerate(raw_rules):
            try:
                rules.append(ClassificationRule.from_dict(r))
            except ValueError as e:
                raise ValueError(f"rule table {name!r}, rule #{i + 1}: {e}") from e

        markers = raw.get("comment_markers")
        if markers is None:
            markers = ["#", "//"]
        elif isinstance(markers, str):
            markers = [markers]

        fmt = str(raw.get("listing_format") or "auto").strip().lower()
        if fmt not in LISTING_FORMATS:
            raise ValueError(f"rule table {name!r}: unknown listing_format {fmt!r}")

        return cls(
            name=name,
            rules=tuple(rules),
            default=InstructionCategory.parse(str(raw.get("default") or "other")),
            comment_markers=tuple(str(m) for m in markers if str(m)),
            listing_format=fmt,
        )


def _strip_comment(line: str, markers: Tuple[str, ...]) -> str:
    cut = len(line)
    for marker in markers:
        idx = line.find(marker)
        if idx != -1:
            cut = min(cut, idx)
    return line[:cut]


def _asm_mnemonic(line: str, markers: Tuple[str, ...]) -> Optional[str]:
    """Mnemonic of a compiler ``-S`` line, or ``None`` for non-instructions."""
    text = _strip_comment(line, markers).strip()
    if not text:
        return None
    parts = text.split(None, 1)
    # leading labels; an instruction may follow on the same line
    while parts and parts[0].endswith(":"):
        parts = parts[1].split(None, 1) if len(parts) > 1 else []
    if not parts:
        return None
    token = parts[0]
    if token.startswith("."):
        # directive
        return None
    if not token[0].isalpha():
        return None
    return token.lower()


def _objdump_mnemonic(line: str) -> Optional[str]:
    """Mnemonic of an ``objdump -d`` instruction line.

    Only ``<addr>:`` lines carry instructions; headers, banners and any
    interleaved source lines are skipped.
    """
    m = _ADDR_RE.match(line.rstrip("\r\n"))
    if m is None:
        return None
    fields = [f for f in m.group("rest").split("\t") if f.strip()]
    if len(fields) >= 2 and _is_encoding(fields[0]):
        fields = fields[1:]
    if not fields:
        return None
    token = fields[0].split(None, 1)[0]
    if not token[0].isalpha():
        return None
    return token.lower()


def _is_encoding(column: str) -> bool:
    """Raw instruction bytes column, as opposed to a hex-looking mnemonic (``add``).

    objdump pads the encoding column before the tab; a mnemonic column is not
    padded and (for ``--no-show-raw-insn`` listings) is the first field.
    """
    text = column.strip()
    if not _HEX_BYTES_RE.match(text):
        return False
    return column != column.rstrip() or any(ch.isdigit() for ch in text)


def _sniff_format(lines: List[str]) -> str:
    for line in lines:
        if any(marker in line for marker in _OBJDUMP_MARKERS):
            return "objdump"
    return "asm"


class ClassifiedListing:
    """Lazy, restartable sequence of :class:`InstructionRecord` for one file.

    Each iteration re-opens the file, so the object holds no cursor state and
    can be reduced more than once.
    """

    def __init__(self, path: Path, table: RuleTable) -> None:
        self.path = Path(path)
        self.table = table

    def __repr__(self) -> str:
        return f"ClassifiedListing({str(self.path)!r}, table={self.table.name!r})"

    def _records(self) -> Iterator[InstructionRecord]:
        with self.path.open("r", encoding="utf-8", errors="replace") as f:
            head: List[str] = []
            fmt = self.table.listing_format
            if fmt == "auto":
                for line in f:
                    head.append(line)
                    if len(head) >= _SNIFF_LINES:
                        break
                fmt = _sniff_format(head)

            markers = self.table.comment_markers
            for line in _chain(head, f):
                if fmt == "objdump":
                    mnemonic = _objdump_mnemonic(line)
                else:
                    mnemonic = _asm_mnemonic(line, markers)
                if mnemonic is None:
                    continue
                yield InstructionRecord(mnemonic=mnemonic, category=self.table.categorize(mnemonic))

    def __iter__(self) -> Iterator[InstructionRecord]:
        try:
            yield from self._records()
        except (OSError, UnicodeError) as e:
            raise ParseError(self.path, e) from e


def _chain(head: List[str], rest: Iterable[str]) -> Iterator[str]:
    yield from head
    yield from rest


class InstructionClassifier:
    """Classify assembly listings for one architecture's rule table."""

    def __init__(self, table: RuleTable) -> None:
        self.table = table

    def classify(self, assembly_path: Union[str, Path]) -> ClassifiedListing:
        """Return the lazy record sequence for *assembly_path*.

        The file is probed once up front so an unreadable listing raises
        :class:`ParseError` here rather than half-way through a reduction.
        """
        p = Path(assembly_path)
        try:
            with p.open("rb"):
                pass
        except OSError as e:
            raise ParseError(p, e) from e
        logger.debug("classifying %s with rule table %s", p, self.table.name)
        return ClassifiedListing(p, self.table)


def count_categories(records: Iterable[InstructionRecord]) -> CategoryCounts:
    """Reduce records to per-category counts; every category is present."""
    counts = empty_counts()
    tally = Counter(r.category for r in records)
    for category, n in tally.items():
        counts[category] = n
    return counts

