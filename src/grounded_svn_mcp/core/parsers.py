"""
Lenient parsers for svn's line-oriented and XML output.

None of these raise on malformed input: a record that is missing a required
field is dropped and the rest of the batch is still returned. The XML
scanners are block/tag based, not a general XML parser: they assume the
scanned element types never nest in themselves (true for every svn --xml
format handled here).
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator
from xml.sax.saxutils import unescape

from .models import (
    NODE_KINDS,
    SCHEDULES,
    BlameEntry,
    ChangedPath,
    Info,
    LogEntry,
    PropertyStatusCode,
    StatusCode,
    StatusEntry,
)

logger = logging.getLogger(__name__)

_ENTITIES = {"&quot;": '"', "&apos;": "'"}

_SKIP_PREFIXES = (
    "Summary of conflicts:",
    "  Text conflicts:",
    "At revision",
    "Updated to revision",
    "---",
    "Status against revision",
)
_MIN_STATUS_LINE = 8
_STATUS_COLUMNS = 7

_STATUS_BY_CHAR = {code.value: code for code in StatusCode}
_PROP_STATUS_BY_CHAR = {code.value: code for code in PropertyStatusCode}

_LOGENTRY_RE = re.compile(r"<logentry\b[^>]*>.*?</logentry>", re.DOTALL)
_PATH_RE = re.compile(r"<path\b([^>]*)>([^<]*)</path>")
_ATTR_RE = re.compile(r'([\w:-]+)="([^"]*)"')
_REVISION_ATTR_RE = re.compile(r'revision="(\d+)"')
_TAG_RE = re.compile(r"<(/?)([A-Za-z_][\w:.-]*)([^>]*?)/?>")
# rev, author (may be blank), lock flag "O", size (blank for dirs), date, name
_LIST_VERBOSE_RE = re.compile(
    r"^\s*\d+\s+(?:\S+\s+)*?(\d+)\s+[A-Za-z]{3}\s+\d{1,2}\s+(?:\d{1,2}:\d{2}|\d{4})\s+(.*)$"
)


@dataclass(frozen=True)
class _Tag:
    name: str
    closing: bool
    attrs: dict[str, str]
    # Raw text between this tag and the next one.
    text: str


def _text(s: str) -> str:
    return unescape(s, _ENTITIES)


def _scan(xml: str) -> Iterator[_Tag]:
    matches = list(_TAG_RE.finditer(xml))
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(xml)
        yield _Tag(
            name=m.group(2),
            closing=bool(m.group(1)),
            attrs=_attrs(m.group(3)),
            text=xml[m.end() : end],
        )


def _tag_text(tag: str, blob: str, *, multiline: bool = False) -> str | None:
    body = r"(.*?)" if multiline else r"([^<]*)"
    m = re.search(rf"<{tag}>{body}</{tag}>", blob, re.DOTALL if multiline else 0)
    return _text(m.group(1)) if m else None


def _attrs(raw: str) -> dict[str, str]:
    return {k: _text(v) for k, v in _ATTR_RE.findall(raw)}


def status_code_of(char: str, log: logging.Logger | None = None) -> StatusCode:
    """
    Map a status column character. Unknown characters become NORMAL with a
    warning, so a single odd line never hides the rest of a listing.
    """
    code = _STATUS_BY_CHAR.get(char)
    if code is None:
        (log or logger).warning("Unknown SVN status code: %r, defaulting to NORMAL", char)
        return StatusCode.NORMAL
    return code


def property_status_of(char: str) -> PropertyStatusCode:
    return _PROP_STATUS_BY_CHAR.get(char, PropertyStatusCode.NORMAL)


def _is_noise(line: str) -> bool:
    return line.startswith(_SKIP_PREFIXES) or "conflicts:" in line


def parse_status(output: str | Iterable[str], log: logging.Logger | None = None) -> list[StatusEntry]:
    """
    Parses plain `svn status` output:
      M       notes/a.md
      A  +    notes/b.md
      ?       scratch.txt
    Columns 1-7 are status flags; the path follows the last non-blank one.
    """
    lines = output.splitlines() if isinstance(output, str) else output
    out: list[StatusEntry] = []
    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line.strip() or _is_noise(line):
            continue
        if len(line) < _MIN_STATUS_LINE:
            continue

        start = 1
        for col in range(1, _STATUS_COLUMNS + 1):
            if line[col] != " ":
                start = col + 1

        file_path = line[start:].strip().replace("\\", "/")
        if not file_path:
            continue

        out.append(
            StatusEntry(
                file_path=file_path,
                status=status_code_of(line[0], log),
                property_status=property_status_of(line[1]),
                locked=line[2] == "L",
                working_copy_locked=line[2] == "L",
            )
        )
    return out


def _changed_paths(block: str) -> tuple[ChangedPath, ...]:
    out: list[ChangedPath] = []
    for raw_attrs, raw_path in _PATH_RE.findall(block):
        attrs = _attrs(raw_attrs)
        action = attrs.get("action")
        path = _text(raw_path).strip()
        if not action or not path:
            continue
        rev = attrs.get("copyfrom-rev")
        out.append(
            ChangedPath(
                path=path,
                action=action,
                kind=attrs.get("kind", ""),
                copyfrom_path=attrs.get("copyfrom-path"),
                copyfrom_rev=int(rev) if rev and rev.isdigit() else None,
            )
        )
    return tuple(out)


def parse_log_xml(xml_output: str) -> list[LogEntry]:
    """
    Parses `svn log --xml [--verbose]`. Each <logentry> is handled on its
    own; entries without revision, author or date are dropped.
    """
    entries: list[LogEntry] = []
    for block in _LOGENTRY_RE.findall(xml_output):
        opening = block[: block.find(">") + 1]
        rev = _REVISION_ATTR_RE.search(opening)
        author = _tag_text("author", block)
        date = _tag_text("date", block)
        if rev is None or author is None or date is None:
            continue
        message = _tag_text("msg", block, multiline=True)
        entries.append(
            LogEntry(
                revision=int(rev.group(1)),
                author=author,
                date=date,
                message=message.strip() if message else "",
                changed_paths=_changed_paths(block),
            )
        )
    return entries


def parse_blame_xml(xml_output: str) -> list[BlameEntry]:
    """
    Parses `svn blame --xml`:
      <entry
         line-number="1">
      <commit
         revision="3">
      <author>alice</author>
      <date>2024-05-01T10:00:00.000000Z</date>
      </commit>
      </entry>
    Lines never committed (no <commit>) are skipped.
    """
    entries: list[BlameEntry] = []
    line_number = 1
    revision: int | None = None
    author: str | None = None
    date: str | None = None

    for tag in _scan(xml_output):
        if tag.name == "entry" and tag.closing:
            if revision is not None and author is not None:
                entries.append(BlameEntry(line_number=line_number, revision=revision, author=author, date=date or ""))
            revision = author = date = None
        elif tag.closing:
            continue
        elif tag.name == "entry":
            n = tag.attrs.get("line-number", "")
            if n.isdigit():
                line_number = int(n)
        elif tag.name == "commit":
            rev = tag.attrs.get("revision", "")
            if rev.isdigit():
                revision = int(rev)
        elif tag.name == "author":
            author = _text(tag.text.strip())
        elif tag.name == "date":
            date = _text(tag.text.strip())
    return entries


def parse_info_xml(xml_output: str) -> Info | None:
    """
    Parses `svn info --xml` for a single target. Returns None unless url,
    repository root and revision are all present.
    """
    url = _tag_text("url", xml_output)
    root_m = re.search(r"<repository>.*?<root>([^<]*)</root>", xml_output, re.DOTALL)
    uuid = _tag_text("uuid", xml_output)
    entry_m = re.search(r"<entry\b([^>]*)>", xml_output)
    entry_attrs = _attrs(entry_m.group(1)) if entry_m else {}
    revision = entry_attrs.get("revision")

    last_rev = 0
    last_author = ""
    last_date = ""
    in_commit = False
    for tag in _scan(xml_output):
        if tag.name == "commit":
            in_commit = not tag.closing
            rev = tag.attrs.get("revision", "")
            if in_commit and rev.isdigit():
                last_rev = int(rev)
        elif in_commit and not tag.closing and tag.name == "author":
            last_author = _text(tag.text.strip())
        elif in_commit and not tag.closing and tag.name == "date":
            last_date = _text(tag.text.strip())

    if not url or root_m is None or revision is None or not revision.isdigit():
        return None

    kind = entry_attrs.get("kind")
    schedule = _tag_text("schedule", xml_output)
    return Info(
        url=url,
        repository_root=_text(root_m.group(1)),
        repository_uuid=uuid or "",
        revision=int(revision),
        last_changed_rev=last_rev,
        last_changed_author=last_author,
        last_changed_date=last_date,
        node_kind=kind if kind in NODE_KINDS else None,
        schedule=schedule if schedule in SCHEDULES else None,
    )


def parse_properties_xml(xml_output: str) -> dict[str, str]:
    """
    Parses `svn proplist --verbose --xml`. Multi-line values are joined with
    newlines; blank lines inside a value are dropped.
    """
    props: dict[str, str] = {}

    for tag in _scan(xml_output):
        if tag.name != "property" or tag.closing:
            continue
        name = tag.attrs.get("name")
        if not name:
            continue
        value_lines = (ln.strip() for ln in tag.text.splitlines())
        props[name] = _text("\n".join(ln for ln in value_lines if ln))
    return props


def parse_list_size(output: str) -> int | None:
    """
    Size column of `svn list --verbose` for a single file:
          6 alice         577328 Jun 03 15:49 model.blend
          7 bob      O       1024 Jun 04 09:12 locked.md
    The size is the integer right before the date columns.
    """
    for raw in output.splitlines():
        if not raw.strip():
            continue
        m = _LIST_VERBOSE_RE.match(raw.rstrip())
        if m is None or m.group(2).endswith("/"):
            return None
        return int(m.group(1))
    return None


def parse_rev_size(output: str) -> int | None:
    """Output of `svnadmin rev-size -q` is a bare byte count."""
    s = output.strip()
    return int(s) if s.isdigit() else None
