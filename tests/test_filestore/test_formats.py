"""
格式处理链测试

测试各编解码器以及 FormatRegistry 的匹配顺序与错误处理
"""

import pytest

from docstore.filestore.errors import ParseFailure, ReadFailure
from docstore.filestore.formats import (
    NO_MATCH,
    FormatHandler,
    FormatRegistry,
    decode_jsonl,
    decode_table,
    decode_text,
    decode_value,
    encode_json,
    encode_jsonl,
    encode_table,
    encode_text,
)


class TestDecodeValue:
    """单元格解码测试"""

    def test_numbers(self):
        assert decode_value("30") == 30
        assert decode_value("-7") == -7
        assert decode_value("2.5") == 2.5
        assert decode_value("1e3") == 1000.0

    def test_strings(self):
        assert decode_value(" John ") == "John"
        assert decode_value("") == ""
        assert decode_value("12abc") == "12abc"


class TestTable:
    """CSV / TSV 测试"""

    def test_decode_csv(self, sample_csv_content):
        assert decode_table(sample_csv_content) == [
            {"Name": "John", "Age": 30, "Email": "john@example.com"},
            {"Name": "Jane", "Age": 25, "Email": "jane@example.com"},
        ]

    def test_escaped_quotes(self):
        assert decode_table('"Text"\n"Hello ""World"""') == [{"Text": 'Hello "World"'}]

    def test_encode_csv(self, sample_records):
        text = encode_table(sample_records)
        assert text.splitlines() == [
            "Name,Age,Email",
            "John,30,john@example.com",
            "Jane,25,jane@example.com",
            "Bob,40,bob@example.com",
        ]

    def test_empty_records(self):
        assert encode_table([]) == ""
        assert decode_table("") == []
        assert decode_table("\n") == []

    def test_ragged_records_keep_cell_text(self):
        text = encode_table([{"a": 1}, {"b": 2}])
        assert text.splitlines() == ["a,b", "1,", ",2"]
        assert decode_table(text) == [{"a": 1, "b": ""}, {"a": "", "b": 2}]

    def test_tsv_delimiter(self, sample_records):
        text = encode_table(sample_records, delimiter="\t")
        assert text.splitlines()[0] == "Name\tAge\tEmail"
        assert decode_table(text, delimiter="\t") == sample_records


class TestJson:
    """JSON / JSONL 测试"""

    def test_encode_indent(self):
        assert encode_json({"a": 1}) == '{\n  "a": 1\n}'

    def test_encode_json_like_string(self):
        assert encode_json('{"a": 1}') == '{\n  "a": 1\n}'
        assert encode_json("[]") == "[]"

    def test_encode_plain_string(self):
        assert encode_json("hello") == '"hello"'

    def test_jsonl_skips_blank_lines(self):
        assert decode_jsonl('{"a": 1}\n\n{"b": 2}\n') == [{"a": 1}, {"b": 2}]

    def test_encode_jsonl(self):
        assert encode_jsonl([{"a": 1}, 2]) == '{"a": 1}\n2\n'


class TestText:
    """文本测试"""

    def test_join_list(self):
        assert encode_text(["line1", "line2", "line3"]) == "line1\nline2\nline3"
        assert encode_text(["part1", "part2"], delimiter=" | ") == "part1 | part2"

    def test_split(self):
        assert decode_text("a---b---c", delimiter="---") == ["a", "b", "c"]
        assert decode_text("line1\nline2") == "line1\nline2"


class TestFormatRegistry:
    """FormatRegistry 测试"""

    def test_find_by_extension(self):
        registry = FormatRegistry()
        assert registry.find(".json").name == "json"
        assert registry.find(".yml").name == "yaml"
        assert registry.find(".tsv").name == "tsv"
        assert registry.find(".md").name == "text"
        assert registry.find("").name == "text"

    def test_register_first_takes_precedence(self):
        registry = FormatRegistry()
        upper = FormatHandler("upper", (".json",), lambda text, **_: text.upper(), encode_text)
        registry.register(upper, first=True)
        assert registry.find(".json") is upper

    def test_no_match(self, temp_dir, run):
        registry = FormatRegistry(handlers=[])
        assert run(registry.load(str(temp_dir / "a.json"), ".json")) is NO_MATCH
        assert run(registry.save(str(temp_dir / "a.json"), {}, ".json")) is NO_MATCH
        assert not NO_MATCH

    def test_save_and_load(self, temp_dir, run):
        registry = FormatRegistry()
        path = str(temp_dir / "data.yaml")
        run(registry.save(path, {"name": "Alice", "tags": ["a", "b"]}, ".yaml"))
        assert run(registry.load(path, ".yaml")) == {"name": "Alice", "tags": ["a", "b"]}

    def test_parse_failure(self, temp_dir, run):
        path = temp_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        registry = FormatRegistry()

        with pytest.raises(ParseFailure) as exc_info:
            run(registry.load(str(path), ".json"))
        assert exc_info.value.code == "PARSE_FAILED"
        assert exc_info.value.format == "json"

    def test_soft_error_returns_empty(self, temp_dir, run):
        registry = FormatRegistry()
        json_path = temp_dir / "broken.json"
        json_path.write_text("{not json", encoding="utf-8")
        jsonl_path = temp_dir / "broken.jsonl"
        jsonl_path.write_text("{\n", encoding="utf-8")

        assert run(registry.load(str(json_path), ".json", soft_error=True)) is None
        assert run(registry.load(str(jsonl_path), ".jsonl", soft_error=True)) == []

    def test_invalid_encoding(self, temp_dir, run):
        path = temp_dir / "bad.txt"
        path.write_bytes(b"\xff\xfe\x00abc")
        registry = FormatRegistry()

        assert run(registry.load(str(path), ".txt", soft_error=True)) == ""
        with pytest.raises(ParseFailure) as exc_info:
            run(registry.load(str(path), ".txt"))
        assert exc_info.value.format == "text"
        assert isinstance(exc_info.value.cause, UnicodeDecodeError)

    def test_native_read_error(self, temp_dir, run):
        (temp_dir / "folder.json").mkdir()
        registry = FormatRegistry()

        with pytest.raises(ReadFailure) as exc_info:
            run(registry.load(str(temp_dir / "folder.json"), ".json", soft_error=True))
        assert exc_info.value.code == "READ_FAILED"
        assert isinstance(exc_info.value, OSError)
