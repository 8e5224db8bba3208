"""
test_hg_log.py - Parsing of templated hg log output.
"""

from datetime import timedelta

import pytest
from hypothesis import given, strategies as st

from hgmirror_core.errors import MalformedLogError
from hgmirror_core.vcs.hg_log import (
    FIELD_SEP,
    ITEM_SEP,
    LOG_TEMPLATE,
    NULL_NODE,
    RECORD_SEP,
    FileChange,
    parse_hg_date,
    parse_log,
)

N1 = "1" * 40
N2 = "2" * 40
N3 = "3" * 40


def record(
    node=N1,
    p1=NULL_NODE,
    p2=NULL_NODE,
    user="Jane Doe <jane@example.com>",
    date="1500000000 0",
    branch="default",
    adds=(),
    mods=(),
    dels=(),
    desc="message",
):
    fields = [node, p1, p2, user, date, branch, ITEM_SEP.join(adds), ITEM_SEP.join(mods), ITEM_SEP.join(dels), desc]
    return FIELD_SEP.join(fields) + RECORD_SEP


def test_template_ends_with_record_separator_and_desc_last():
    assert LOG_TEMPLATE.endswith("{desc}" + RECORD_SEP)
    assert LOG_TEMPLATE.count(FIELD_SEP) == 9


def test_parse_single_root_entry():
    entries = parse_log(record(adds=["foo.txt"]))

    assert len(entries) == 1
    entry = entries[0]
    assert entry.global_id == N1
    assert entry.parents == ()
    assert entry.is_root
    assert entry.user == "Jane Doe <jane@example.com>"
    assert entry.date.timestamp() == 1500000000
    assert entry.branch == "default"
    assert entry.description == "message"
    assert dict(entry.files) == {"foo.txt": FileChange.ADDED}


def test_parse_keeps_output_order():
    raw = record(node=N3, p1=N2) + record(node=N2, p1=N1) + record(node=N1)

    entries = parse_log(raw)

    assert [e.global_id for e in entries] == [N3, N2, N1]
    assert entries[0].parents == (N2,)
    assert entries[1].parents == (N1,)


def test_parse_merge_parents():
    entry = parse_log(record(node=N3, p1=N1, p2=N2))[0]

    assert entry.parents == (N1, N2)
    assert entry.is_merge


def test_parse_file_change_kinds():
    entry = parse_log(record(adds=["new.txt"], mods=["a.txt", "dir/b.txt"], dels=["gone.txt"]))[0]

    assert dict(entry.files) == {
        "new.txt": FileChange.ADDED,
        "a.txt": FileChange.MODIFIED,
        "dir/b.txt": FileChange.MODIFIED,
        "gone.txt": FileChange.REMOVED,
    }


def test_parse_multiline_description():
    raw = record(node=N2, p1=N1, desc="title\n\nbody line 1\nbody line 2") + record(node=N1, desc="root")

    entries = parse_log(raw)

    assert len(entries) == 2
    assert entries[0].description == "title\n\nbody line 1\nbody line 2"
    assert entries[1].description == "root"


def test_parse_empty_description_passes_through():
    assert parse_log(record(desc=""))[0].description == ""


def test_parse_empty_output():
    assert parse_log("") == []
    assert parse_log("\n") == []


def test_parse_date_keeps_commit_timezone():
    # hg stores the offset in seconds west of UTC
    entry = parse_log(record(date="1500000000 -7200"))[0]

    assert entry.date.utcoffset() == timedelta(hours=2)
    assert entry.date.timestamp() == 1500000000


def test_parse_hg_date_rejects_garbage():
    with pytest.raises(ValueError):
        parse_hg_date("yesterday")


@pytest.mark.parametrize(
    "raw",
    [
        record(node=""),
        record(node="not-a-hash"),
        record(date=""),
        record(date="abc 0"),
        record(p1="xyz"),
        FIELD_SEP.join([N1, NULL_NODE, NULL_NODE]) + RECORD_SEP,
    ],
)
def test_parse_malformed_records(raw):
    with pytest.raises(MalformedLogError) as exc_info:
        parse_log(raw)
    assert exc_info.value.record


def test_malformed_error_carries_raw_record():
    raw = record(node="oops")
    with pytest.raises(MalformedLogError) as exc_info:
        parse_log(raw)
    assert "oops" in exc_info.value.record


_desc = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",), blacklist_characters=FIELD_SEP + RECORD_SEP),
    max_size=80,
)


@given(descriptions=st.lists(_desc, min_size=1, max_size=5))
def test_descriptions_never_break_record_boundaries(descriptions):
    raw = "".join(
        record(node=f"{i:040x}", desc=desc) for i, desc in enumerate(descriptions, start=1)
    )

    entries = parse_log(raw)

    assert [e.description for e in entries] == descriptions
