"""
目录索引测试

测试 base-36 编码、index.txt / index.txtl 解析以及 save_index / load_index
"""

import pytest

from docstore.filestore.indexing import (
    from_base36,
    parse_index,
    parse_index_txt,
    parse_index_txtl,
    serialize_index,
    to_base36,
)
from docstore.models.filestore import DocumentStat


class TestBase36:
    """base-36 编码测试"""

    def test_known_values(self):
        assert to_base36(100) == "2s"
        assert to_base36(333) == "99"
        assert to_base36(0) == "0"
        assert from_base36("2s") == 100
        assert from_base36("5k") == 200

    def test_truncates_fraction(self):
        assert to_base36(100.9) == "2s"

    def test_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)


class TestParseIndex:
    """索引解析测试"""

    def test_txt(self):
        entries = parse_index_txt("a.txt 2s 99\nsub/ 3s 0\n")
        assert [name for name, _ in entries] == ["a.txt", "sub/"]
        stat = entries[0][1]
        assert stat.mtime_ms == 100
        assert stat.size == 333
        assert stat.is_file
        assert entries[1][1].is_directory

    def test_names_with_spaces(self):
        entries = parse_index_txt("my file.txt 2s 99")
        assert entries[0][0] == "my file.txt"

    def test_legacy_type_column(self):
        entries = parse_index_txt("F a.txt 2s 99\nD sub 3s 999")
        assert [name for name, _ in entries] == ["a.txt", "sub/"]
        assert entries[1][1].mtime_ms == 136
        assert entries[1][1].size == 11997

    def test_name_only_and_malformed_lines(self):
        entries = parse_index_txt("README\n\nbroken zz$ 1\nok.txt 1 1")
        assert [name for name, _ in entries] == ["README", "ok.txt"]

    def test_txtl(self):
        text = "columns: name, mtimeMs.36, size.36\nlong\n---\nfile.json h7v37t 2s\ndir/sub.json h7v37u 5k"
        entries = parse_index_txtl(text)
        assert [name for name, _ in entries] == ["file.json", "dir/sub.json"]
        assert entries[0][1].mtime_ms == from_base36("h7v37t")
        assert entries[1][1].size == 200

    def test_txtl_without_header(self):
        assert parse_index_txtl("a.txt 2s 99")[0][0] == "a.txt"

    def test_dispatch(self):
        assert parse_index("index.txt", "a.txt 1 1")[0][0] == "a.txt"
        assert parse_index("index.txtl", "---\na.txt 1 1")[0][0] == "a.txt"

    def test_serialize(self):
        text = serialize_index([
            ("a.txt", DocumentStat(mtime_ms=100, size=333, is_file=True)),
            ("sub", DocumentStat(mtime_ms=136, is_directory=True)),
        ])
        assert text == "a.txt 2s 99\nsub/ 3s 0"
        assert [name for name, _ in parse_index_txt(text)] == ["a.txt", "sub/"]


class TestStoreIndex:
    """DocumentStore 索引操作测试"""

    def test_save_index_explicit_entries(self, store, temp_dir, run):
        run(store.save_index(".", [("a.txt", DocumentStat(mtime_ms=100, size=333))]))
        assert (temp_dir / "index.txt").read_text() == "a.txt 2s 99"
        assert "index.txt" in store.meta

    def test_save_index_scans_directory(self, make_store, temp_dir, run):
        store = make_store(predefined=[("docs/a.txt", "abc"), ("docs/inner/b.txt", "b")])

        assert run(store.save_index("docs")) is True

        index = run(store.load_index("docs"))
        names = [name for name, _ in index.entries]
        assert names == ["inner/", "a.txt"]
        assert index.get("a.txt").size == 3
        assert "docs/inner" in store.meta

    def test_save_index_excludes_index_files(self, make_store, run):
        store = make_store(predefined=[("a.txt", "a")])
        run(store.save_index("."))
        run(store.save_index("."))

        names = [name for name, _ in run(store.load_index(".")).entries]
        assert names == ["a.txt"]

    def test_load_index_missing(self, store, run):
        assert run(store.load_index(".")).entries == []

    def test_read_dir_uses_saved_index(self, make_store, temp_dir, collect, run):
        store = make_store(predefined=[("a.txt", "a")])
        run(store.save_index("."))
        (temp_dir / "unindexed.txt").write_text("x")

        assert [e.path for e in collect(store.read_dir("."))] == ["a.txt"]


class TestDump:
    """dump 测试"""

    PREDEFINED = [
        ("test1.txt", "content1"),
        ("test2.json", {"key": "value"}),
        ("test3.csv", [
            {"name": "John", "age": 30},
            {"name": "Jane", "age": 25},
        ]),
    ]

    def test_dump_with_indexes_into_same_root(self, make_store, temp_dir, run):
        source = make_store(root="dump", predefined=self.PREDEFINED)
        target = make_store(root="dump")

        assert run(source.dump(target)) == 3

        assert run(target.load_document("test1.txt")) == "content1"
        assert run(target.load_document("test2.json")) == {"key": "value"}
        assert run(target.load_document("test3.csv")) == self.PREDEFINED[2][1]
        assert (temp_dir / "dump" / "index.txt").exists()
        assert len(run(target.list_dir("."))) == 3

    def test_dump_nested_into_other_root(self, make_store, temp_dir, collect, run):
        source = make_store(root="src", predefined=[
            ("dir1/file1.txt", "content1"),
            ("dir2/subdir/config.json", {"debug": True}),
            ("other.txt", "other"),
        ])
        target = make_store(root="dst")

        assert run(source.dump(target)) == 3

        assert run(target.load_document("dir2/subdir/config.json")) == {"debug": True}
        for index in ("index.txt", "dir1/index.txt", "dir2/index.txt", "dir2/subdir/index.txt"):
            assert (temp_dir / "dst" / index).exists()

        (temp_dir / "dst" / "unindexed.txt").write_text("x")
        paths = [e.path for e in collect(target.read_dir(".", depth=3)) if not e.is_directory]
        assert sorted(paths) == ["dir1/file1.txt", "dir2/subdir/config.json", "other.txt"]

    def test_dump_into_itself_without_indexes(self, make_store, temp_dir, run):
        store = make_store(predefined=[("a/b.json", [1, 2])])

        assert run(store.dump(indexes=False)) == 1
        assert run(store.load_document("a/b.json")) == [1, 2]
        assert not (temp_dir / "index.txt").exists()
