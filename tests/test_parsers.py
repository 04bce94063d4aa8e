from __future__ import annotations

import logging

from grounded_svn_mcp.core.models import PropertyStatusCode, StatusCode
from grounded_svn_mcp.core.parsers import (
    parse_blame_xml,
    parse_info_xml,
    parse_list_size,
    parse_log_xml,
    parse_properties_xml,
    parse_rev_size,
    parse_status,
    status_code_of,
)


# --- status -----------------------------------------------------------------

def test_parse_status_basic_columns():
    out = (
        "M       notes/a.md\n"
        "A  +    notes/b.md\n"
        "?       scratch.txt\n"
        " M      props.md\n"
        "!       gone.md\n"
    )
    entries = parse_status(out)
    by_path = {e.file_path: e for e in entries}

    assert by_path["notes/a.md"].status == StatusCode.MODIFIED
    assert by_path["notes/b.md"].status == StatusCode.ADDED
    assert by_path["scratch.txt"].status == StatusCode.UNVERSIONED
    assert by_path["props.md"].status == StatusCode.NORMAL
    assert by_path["props.md"].property_status == PropertyStatusCode.MODIFIED
    assert by_path["gone.md"].status == StatusCode.MISSING


def test_parse_status_keeps_spaces_and_normalizes_backslashes():
    entries = parse_status("M       notes\\a b.md\n")
    assert len(entries) == 1
    assert entries[0].file_path == "notes/a b.md"


def test_parse_status_skips_summary_and_short_lines():
    out = (
        "C       conflicted.md\n"
        "Summary of conflicts:\n"
        "  Text conflicts: 1\n"
        "At revision 12.\n"
        "M\n"
        "\n"
    )
    entries = parse_status(out)
    assert [e.file_path for e in entries] == ["conflicted.md"]
    assert entries[0].status == StatusCode.CONFLICTED


def test_parse_status_single_modified_line():
    entries = parse_status("M       foo.md\n")
    assert len(entries) == 1
    assert entries[0].file_path == "foo.md"
    assert entries[0].status == StatusCode.MODIFIED
    assert entries[0].locked is False


def test_parse_status_skips_update_and_header_lines():
    out = (
        "Updated to revision 12.\n"
        "--- Changelist 'docs':\n"
        "Status against revision:     12\n"
        "M       kept.md\n"
    )
    assert [e.file_path for e in parse_status(out)] == ["kept.md"]


def test_parse_status_lock_column():
    entries = parse_status("  L     locked.md\n")
    assert entries[0].locked is True
    assert entries[0].working_copy_locked is True
    assert entries[0].file_path == "locked.md"


def test_parse_status_accepts_line_iterable():
    entries = parse_status(["M       a.md", "D       b.md"])
    assert [e.status for e in entries] == [StatusCode.MODIFIED, StatusCode.DELETED]


def test_status_code_unknown_char_warns_once(caplog):
    with caplog.at_level(logging.WARNING):
        assert status_code_of("Z") == StatusCode.NORMAL
    warnings = [r for r in caplog.records if "Unknown SVN status code" in r.getMessage()]
    assert len(warnings) == 1


def test_status_code_known_chars_round_trip():
    for code in StatusCode:
        assert status_code_of(code.value) is code


def test_status_code_helpers():
    assert StatusCode.MODIFIED.has_changes
    assert not StatusCode.UNVERSIONED.has_changes
    assert not StatusCode.UNVERSIONED.is_versioned
    assert StatusCode.MISSING.is_versioned
    assert StatusCode.NORMAL.label == "Up to date"


# --- log --------------------------------------------------------------------

LOG_XML = """<?xml version="1.0" encoding="UTF-8"?>
<log>
<logentry
   revision="3">
<author>alice</author>
<date>2024-05-03T10:00:00.000000Z</date>
<paths>
<path
   action="M"
   prop-mods="false"
   text-mods="true"
   kind="file">/trunk/notes/a.md</path>
<path
   copyfrom-path="/trunk/old.md"
   copyfrom-rev="2"
   action="A"
   kind="file">/trunk/new.md</path>
</paths>
<msg>Fix &lt;b&gt; &amp; "quotes"

second paragraph
</msg>
</logentry>
<logentry
   revision="2">
<date>2024-05-02T10:00:00.000000Z</date>
<msg>no author here</msg>
</logentry>
<logentry
   revision="1">
<author>bob</author>
<date>2024-05-01T10:00:00.000000Z</date>
<msg></msg>
</logentry>
</log>
"""


def test_parse_log_xml_drops_entries_missing_author():
    entries = parse_log_xml(LOG_XML)
    assert [e.revision for e in entries] == [3, 1]
    assert entries[1].author == "bob"
    assert entries[1].message == ""


def test_parse_log_xml_message_is_unescaped_and_multiline():
    first = parse_log_xml(LOG_XML)[0]
    assert first.message == 'Fix <b> & "quotes"\n\nsecond paragraph'
    assert first.date == "2024-05-03T10:00:00.000000Z"


def test_parse_log_xml_changed_paths():
    first = parse_log_xml(LOG_XML)[0]
    assert len(first.changed_paths) == 2

    modified, copied = first.changed_paths
    assert modified.path == "/trunk/notes/a.md"
    assert modified.action == "M"
    assert modified.kind == "file"
    assert modified.copyfrom_path is None

    assert copied.copyfrom_path == "/trunk/old.md"
    assert copied.copyfrom_rev == 2


def test_parse_log_xml_empty_and_garbage():
    assert parse_log_xml("") == []
    assert parse_log_xml("svn: E155007: not a working copy") == []


# --- blame ------------------------------------------------------------------

BLAME_XML = """<?xml version="1.0" encoding="UTF-8"?>
<blame>
<target
   path="notes/a.md">
<entry
   line-number="1">
<commit
   revision="1">
<author>alice</author>
<date>2024-05-01T10:00:00.000000Z</date>
</commit>
</entry>
<entry
   line-number="2">
</entry>
<entry
   line-number="3">
<commit
   revision="4">
<author>bob</author>
<date>2024-05-04T10:00:00.000000Z</date>
</commit>
</entry>
</target>
</blame>
"""


def test_parse_blame_xml_multiline_attributes():
    entries = parse_blame_xml(BLAME_XML)
    assert [(e.line_number, e.revision, e.author) for e in entries] == [
        (1, 1, "alice"),
        (3, 4, "bob"),
    ]
    assert entries[1].date == "2024-05-04T10:00:00.000000Z"


def test_parse_blame_xml_line_number_defaults_to_one():
    xml = (
        "<blame><target path=\"a.md\">\n"
        "<entry>\n<commit revision=\"2\">\n<author>alice</author>\n</commit>\n</entry>\n"
        "</target></blame>\n"
    )
    entries = parse_blame_xml(xml)
    assert [(e.line_number, e.revision, e.author, e.date) for e in entries] == [(1, 2, "alice", "")]


def test_parse_blame_xml_drops_commit_without_author():
    xml = (
        "<blame><target path=\"a.md\">\n"
        "<entry line-number=\"1\">\n<commit revision=\"5\">\n"
        "<date>2024-05-05T10:00:00.000000Z</date>\n</commit>\n</entry>\n"
        "<entry line-number=\"2\">\n<commit revision=\"6\">\n<author>bob</author>\n</commit>\n</entry>\n"
        "</target></blame>\n"
    )
    entries = parse_blame_xml(xml)
    assert [(e.line_number, e.revision, e.author) for e in entries] == [(2, 6, "bob")]


# --- info -------------------------------------------------------------------

INFO_XML = """<?xml version="1.0" encoding="UTF-8"?>
<info>
<entry
   kind="file"
   path="notes/a.md"
   revision="7">
<url>file:///tmp/repo/notes/a.md</url>
<relative-url>^/notes/a.md</relative-url>
<repository>
<root>file:///tmp/repo</root>
<uuid>0f6c1d2e-aaaa-bbbb-cccc-1234567890ab</uuid>
</repository>
<wc-info>
<wcroot-abspath>/tmp/wc</wcroot-abspath>
<schedule>normal</schedule>
<depth>infinity</depth>
</wc-info>
<commit
   revision="5">
<author>carol</author>
<date>2024-05-05T10:00:00.000000Z</date>
</commit>
</entry>
</info>
"""


def test_parse_info_xml_fields():
    info = parse_info_xml(INFO_XML)
    assert info is not None
    assert info.url == "file:///tmp/repo/notes/a.md"
    assert info.repository_root == "file:///tmp/repo"
    assert info.repository_uuid == "0f6c1d2e-aaaa-bbbb-cccc-1234567890ab"
    assert info.revision == 7
    assert info.last_changed_rev == 5
    assert info.last_changed_author == "carol"
    assert info.last_changed_date == "2024-05-05T10:00:00.000000Z"
    assert info.node_kind == "file"
    assert info.schedule == "normal"


def test_parse_info_xml_missing_url_is_absent():
    xml = INFO_XML.replace("<url>file:///tmp/repo/notes/a.md</url>\n", "")
    assert parse_info_xml(xml) is None


def test_parse_info_xml_empty():
    assert parse_info_xml("") is None


# --- properties -------------------------------------------------------------

PROPS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<properties>
<target
   path="notes">
<property
   name="svn:ignore">*.tmp

build
</property>
<property
   name="svn:eol-style">native</property>
</target>
</properties>
"""


def test_parse_properties_xml_multiline_values():
    props = parse_properties_xml(PROPS_XML)
    assert props == {"svn:ignore": "*.tmp\nbuild", "svn:eol-style": "native"}


def test_parse_properties_xml_no_properties():
    assert parse_properties_xml('<?xml version="1.0"?>\n<properties>\n</properties>\n') == {}


# --- sizes ------------------------------------------------------------------

def test_parse_list_size():
    assert parse_list_size("      6 alice         577328 Jun 03 15:49 model.blend\n") == 577328
    assert parse_list_size("\n      2 bob   12 Jan 01 10:00 a.md\n") == 12
    assert parse_list_size("      7 bob      O       1024 Jun 04 09:12 locked.md\n") == 1024
    assert parse_list_size("      6          O     577328 Jun 03 15:49 model.blend\n") == 577328
    assert parse_list_size("      5          577328 Jun 03  2023 old.blend\n") == 577328
    assert parse_list_size("      8 1234          99 Jun 03 15:49 numeric-author.md\n") == 99
    assert parse_list_size("      2 bob             Jan 01 10:00 dir/\n") is None
    assert parse_list_size("") is None


def test_parse_rev_size():
    assert parse_rev_size("4096\n") == 4096
    assert parse_rev_size("svnadmin: E160006: No such revision") is None
