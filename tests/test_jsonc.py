"""Tests for the lenient manifest reader and strict writer."""

import json

import pytest

from common.jsonc import loads_lenient, read_json_file, write_json_file
from errors import ManifestParseError


class TestLoadsLenient:
    """Comment and trailing-comma tolerant parsing."""

    def test_line_and_block_comments(self):
        text = """
        {
          // the name
          "name": "demo", /* inline */
          "version": "1.0.0"
        }
        """
        assert loads_lenient(text) == {"name": "demo", "version": "1.0.0"}

    def test_trailing_commas(self):
        assert loads_lenient('{"a": [1, 2,], "b": {"c": 1,},}') == {"a": [1, 2], "b": {"c": 1}}

    def test_comment_markers_inside_strings_survive(self):
        text = '{"url": "https://example.com/a", "glob": "src/**/*.js", "s": "a,}"}'
        assert loads_lenient(text) == {
            "url": "https://example.com/a",
            "glob": "src/**/*.js",
            "s": "a,}",
        }

    def test_escaped_quotes_in_strings(self):
        assert loads_lenient(r'{"q": "say \"hi\" // not a comment"}') == {"q": 'say "hi" // not a comment'}

    def test_byte_order_mark(self):
        assert loads_lenient('\ufeff{"a": 1}') == {"a": 1}

    def test_invalid_text_names_source(self):
        with pytest.raises(ManifestParseError) as excinfo:
            loads_lenient("{not json", source="package.json")
        assert "package.json" in str(excinfo.value)


class TestJsonFiles:
    """Reading and writing JSON files on disk."""

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ManifestParseError):
            read_json_file(tmp_path / "missing.json")

    def test_missing_file_ok(self, tmp_path):
        assert read_json_file(tmp_path / "missing.json", missing_ok=True) == {}

    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ManifestParseError):
            read_json_file(path)

    def test_write_is_strict_and_indented(self, tmp_path):
        path = tmp_path / "out.json"
        write_json_file(path, {"name": "demo", "dependencies": {"a": "^1.0.0"}})
        text = path.read_text()
        assert text.endswith("}\n")
        assert '\n  "name": "demo"' in text
        assert json.loads(text) == {"name": "demo", "dependencies": {"a": "^1.0.0"}}

    def test_write_error_propagates(self, tmp_path):
        with pytest.raises(OSError):
            write_json_file(tmp_path / "no" / "such" / "dir.json", {})
