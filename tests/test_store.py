from dataclasses import replace
from datetime import timedelta

import pytest

from tasktimer import codec
from tasktimer.errors import InvalidDescription, IoFailure, MalformedRecord, NotFound
from tasktimer.store import LogStore

from conftest import T0


def _fill(store, *descriptions):
    for i, desc in enumerate(descriptions):
        store.append(desc, start_time=T0 + timedelta(minutes=i))


def test_append_creates_file_with_header(store, log_file):
    assert not log_file.exists()
    assert store.append("write spec", start_time=T0) == 1
    assert log_file.read_text(encoding="utf-8") == (
        codec.header_line() + '1,"Sun, 18 Oct 2026 09:00:00 +0000",write spec,0,0,,\n'
    )


def test_append_creates_missing_directories(tmp_path):
    store = LogStore(tmp_path / "nested" / "dir" / "tasks.csv")
    assert store.append("task", start_time=T0) == 1
    assert store.path.exists()


def test_append_assigns_count_plus_one(store):
    _fill(store, "a", "b", "c")
    assert [r.index for r in store.list()] == [1, 2, 3]
    assert [r.description for r in store.list()] == ["a", "b", "c"]


def test_list_missing_file_is_empty(store):
    assert store.list() == []


def test_find_and_not_found(store):
    _fill(store, "a", "b")
    assert store.find(2).description == "b"
    with pytest.raises(NotFound) as info:
        store.find(3)
    assert info.value.index == 3


def test_resolve_defaults_to_latest(store):
    with pytest.raises(NotFound):
        store.resolve(None)
    _fill(store, "a", "b")
    assert store.resolve(None).index == 2
    assert store.resolve(1).description == "a"


def test_replace_touches_only_the_target_line(store, log_file):
    _fill(store, "a", "b", "c")
    before = log_file.read_text(encoding="utf-8").splitlines()
    store.replace(2, lambda r: replace(r, paused_seconds=42))
    after = log_file.read_text(encoding="utf-8").splitlines()
    assert len(before) == len(after)
    changed = [i for i, (x, y) in enumerate(zip(before, after)) if x != y]
    assert changed == [2]
    assert store.find(2).paused_seconds == 42


def test_replace_missing_index_leaves_file_alone(store, log_file):
    _fill(store, "a")
    before = log_file.read_bytes()
    with pytest.raises(NotFound):
        store.replace(5, lambda r: r)
    assert log_file.read_bytes() == before


def test_replace_cannot_change_index(store):
    _fill(store, "a", "b")
    with pytest.raises(ValueError):
        store.replace(1, lambda r: replace(r, index=2))


def test_updater_error_propagates_without_writing(store, log_file):
    _fill(store, "a")
    before = log_file.read_bytes()

    def boom(r):
        raise RuntimeError("nope")

    with pytest.raises(RuntimeError):
        store.replace(1, boom)
    assert log_file.read_bytes() == before


def test_delete_renumbers_following_records(store):
    _fill(store, "a", "b", "c", "d")
    removed = store.delete(2)
    assert removed.description == "b"
    records = store.list()
    assert [r.index for r in records] == [1, 2, 3]
    assert [r.description for r in records] == ["a", "c", "d"]
    # start times travel with their records
    assert records[1].start_time == T0 + timedelta(minutes=2)


def test_indices_stay_contiguous(store):
    _fill(store, "a", "b", "c")
    store.delete(1)
    _fill(store, "d")
    store.delete(3)
    _fill(store, "e", "f")
    store.delete(2)
    records = store.list()
    assert [r.index for r in records] == list(range(1, len(records) + 1))
    assert [r.description for r in records] == ["b", "e", "f"]


def test_delete_only_record_leaves_header(store, log_file):
    _fill(store, "write spec")
    store.delete(1)
    assert log_file.read_text(encoding="utf-8") == codec.header_line()
    assert store.list() == []


def test_delete_missing_index(store):
    _fill(store, "a")
    with pytest.raises(NotFound):
        store.delete(2)
    with pytest.raises(NotFound):
        LogStore(store.path.parent / "absent.csv").delete(1)


def test_no_temporary_files_left_behind(store, log_file):
    _fill(store, "a", "b")
    store.replace(1, lambda r: replace(r, elapsed_seconds=1))
    store.delete(2)
    assert sorted(p.name for p in log_file.parent.iterdir()) == ["tasks.csv"]


def test_invalid_description_does_not_touch_file(store, log_file):
    _fill(store, "a")
    before = log_file.read_bytes()
    with pytest.raises(InvalidDescription):
        store.append("line one\nline two", start_time=T0)
    assert log_file.read_bytes() == before


def test_description_with_separator_is_escaped(store):
    store.append('fix "parser", again', start_time=T0)
    assert store.find(1).description == 'fix "parser", again'


def test_malformed_file_is_reported_not_overwritten(store, log_file):
    log_file.write_text(codec.header_line() + '1,"Sun, 18 Oct 2026 09:00:00 +0000",a,0\n', encoding="utf-8")
    before = log_file.read_bytes()
    with pytest.raises(MalformedRecord) as info:
        store.list()
    assert info.value.line == 2
    with pytest.raises(MalformedRecord):
        store.append("b", start_time=T0)
    assert log_file.read_bytes() == before


def test_unreadable_path_is_io_failure(tmp_path):
    # a directory where the log file should be
    store = LogStore(tmp_path)
    with pytest.raises(IoFailure) as info:
        store.list()
    assert info.value.action == "read"


@pytest.mark.parametrize("desc", ["page\x0cbreak", "line\u2028sep", "nel\x85char", "gs\x1dchar"])
def test_unicode_line_boundaries_never_reach_the_file(store, log_file, desc):
    _fill(store, "a")
    with pytest.raises(InvalidDescription):
        store.append(desc, start_time=T0)
    assert [r.description for r in store.list()] == ["a"]


def test_invalid_utf8_is_malformed(store, log_file):
    log_file.write_bytes(codec.header_line().encode("utf-8") + b"1,\xff\n")
    with pytest.raises(MalformedRecord) as info:
        store.list()
    assert info.value.line == 2
    assert "UTF-8" in str(info.value)
