"""Tests for the expat-driven parsing API."""

import io
from pathlib import Path

import pytest

from xml_event_tree.api import ParseResult, XMLParser, parse, parse_bytes, parse_file, parse_string
from xml_event_tree.printer import to_string
from xml_event_tree.shared import (
    DiagnosticSeverity,
    ErrorCode,
    ParserConfig,
    PrinterConfig,
    clear_last_error,
    last_error_code,
)
from xml_event_tree.tree import Standalone, XMLElement

FLAT = PrinterConfig(indented=False)


@pytest.fixture(autouse=True)
def _reset_last_error():
    clear_last_error()
    yield
    clear_last_error()


class TestParseFunctions:
    """Level 1 entry points."""

    def test_parse_simple_document(self) -> None:
        """Test a small document builds the expected tree."""
        result = parse('<root><item id="1">value</item><empty/></root>')

        assert isinstance(result, ParseResult)
        assert result.success
        assert result.error_code is ErrorCode.NONE
        assert result.root.name == "root"
        assert [child.name for child in result.root.children] == ["item", "empty"]
        assert result.root.children[0].contents == "value"
        assert result.root.children[0].get_attribute("id") == "1"
        assert result.root.children[1].contents is None
        assert result.element_count == 3
        assert result.error_message() is None

    def test_declaration_is_recorded(self) -> None:
        """Test version, encoding and standalone reach the document."""
        result = parse_string(
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?><r/>'
        )

        document = result.document
        assert document.version == "1.0"
        assert document.encoding == "UTF-8"
        assert document.standalone is Standalone.YES

    def test_missing_declaration_leaves_fields_unset(self) -> None:
        """Test a document without declaration has no version."""
        document = parse("<r/>").document

        assert document.version is None
        assert document.standalone is Standalone.UNKNOWN

    def test_attribute_order_is_preserved(self) -> None:
        """Test attributes keep their source order."""
        root = parse('<r z="1" a="2" m="3"/>').root

        assert [attr.name for attr in root.attributes] == ["z", "a", "m"]

    def test_parse_bytes_honours_declared_encoding(self) -> None:
        """Test byte input is decoded with the declared encoding."""
        data = '<?xml version="1.0" encoding="ISO-8859-1"?><r>caf\xe9</r>'.encode("latin-1")

        result = parse_bytes(data)

        assert result.root.contents == "café"
        assert result.document.encoding == "ISO-8859-1"

    def test_parse_file_and_path(self, tmp_path: Path) -> None:
        """Test reading from disk by name and by Path."""
        target = tmp_path / "doc.xml"
        target.write_text("<r><c>x</c></r>", encoding="utf-8")

        assert parse_file(str(target)).root.children[0].contents == "x"
        assert parse(target).root.name == "r"

    def test_parse_file_objects(self) -> None:
        """Test binary and text file-like objects are both accepted."""
        assert parse(io.BytesIO(b"<r>b</r>")).root.contents == "b"
        assert parse(io.StringIO("<r>t</r>")).root.contents == "t"

    def test_missing_file_reports_io_error(self, tmp_path: Path) -> None:
        """Test an unreadable file gives an IO failure."""
        result = parse_file(tmp_path / "missing.xml")

        assert not result.success
        assert result.error_code is ErrorCode.IO
        assert last_error_code() is ErrorCode.IO

    def test_unsupported_input_type_raises_error(self) -> None:
        """Test non-XML input types raise TypeError."""
        with pytest.raises(TypeError, match="Unsupported input type: int"):
            parse(123)  # type: ignore

    def test_malformed_input_reports_tokenizer_error(self) -> None:
        """Test expat rejections carry position and code."""
        result = parse("<root><a></root>")

        assert not result.success
        assert result.error_code is ErrorCode.TOKENIZER
        assert result.tokenizer_error is not None
        assert result.tokenizer_error.line == 1
        assert result.tokenizer_error.message
        assert result.error_message().startswith("Tokenizer error: ")
        assert "Expat error #" in result.error_message()
        assert result.has_errors()
        assert result.diagnostics[-1].position["line"] == 1
        assert last_error_code() is ErrorCode.TOKENIZER

    def test_empty_input_is_rejected(self) -> None:
        """Test input without any element fails in the tokenizer."""
        assert parse("").error_code is ErrorCode.TOKENIZER

    def test_summary_and_metrics(self) -> None:
        """Test the summary reports counts from the build."""
        result = parse("<r><a/><b/></r>", correlation_id="req-1")

        summary = result.summary()
        assert summary["success"] is True
        assert summary["element_count"] == 3
        assert summary["correlation_id"] == "req-1"
        assert result.performance.elements_created == 3
        assert result.performance.events_processed >= 6
        assert result.performance.bytes_processed > 0


class TestWhitespace:
    """Whitespace-only contents handling."""

    INDENTED = "<root>\n   <a>text</a>\n   <b/>\n</root>\n"

    def test_whitespace_kept_by_default(self) -> None:
        """Test formatting whitespace stays as contents by default."""
        root = parse(self.INDENTED).root

        assert root.contents == "\n   \n   \n"
        assert root.is_mixed

    def test_whitespace_dropped_when_ignored(self) -> None:
        """Test the compact preset drops whitespace-only contents."""
        root = parse(self.INDENTED, ParserConfig.compact()).root

        assert root.contents is None
        assert root.children[0].contents == "text"

    def test_ignored_whitespace_round_trips_indented_output(self) -> None:
        """Test indented output parses back to the same indented output."""
        document = parse(self.INDENTED, ParserConfig.compact()).document

        assert to_string(document.root) == self.INDENTED

    def test_surrounding_whitespace_is_trimmed(self) -> None:
        """Test text keeps its inner spacing when trimmed."""
        root = parse("<r>  a  b  </r>", ParserConfig.compact()).root

        assert root.contents == "a  b"

    def test_parser_setter_forwards_to_builder(self) -> None:
        """Test toggling whitespace handling on a parser."""
        parser = XMLParser()
        parser.ignore_whitespace = True

        assert parser.builder.ignore_whitespace
        assert parser.load_string("<r> </r>")
        assert parser.document.root.contents is None


class TestRoundTrip:
    def test_unindented_round_trip(self) -> None:
        """Test compact markup prints back byte for byte."""
        source = (
            '<?xml version="1.0" encoding="UTF-8"?>'
            '<root id="r"><item k="v">one</item><empty/></root>'
        )

        assert to_string(parse(source).document, FLAT) == source


class TestXMLParser:
    """Level 2 parser object."""

    def test_load_string_and_detach(self) -> None:
        """Test a detached document survives the next load."""
        parser = XMLParser()
        assert parser.load_string("<first/>")
        first = parser.detach_document()

        assert parser.document is None
        assert parser.load_string("<second/>")
        assert first.root.name == "first"
        assert parser.document.root.name == "second"

    def test_failed_parser_can_be_reused(self) -> None:
        """Test a new load starts over after a tokenizer failure."""
        parser = XMLParser()
        outcome = parser.load_string("<a>")

        assert outcome.code is ErrorCode.TOKENIZER
        assert parser.failure is not None
        assert parser.load_string("<a/>")
        assert parser.failure is None
        assert parser.tokenizer_error is None

    def test_memory_error_reports_out_of_memory(self, monkeypatch) -> None:
        """Test allocation failure while appending text maps to OUT_OF_MEMORY."""
        def exhausted(self, chunk, length=None):
            raise MemoryError()

        monkeypatch.setattr(XMLElement, "append_contents", exhausted)
        outcome = XMLParser().load_string("<r>text</r>")

        assert outcome.code is ErrorCode.OUT_OF_MEMORY
        assert last_error_code() is ErrorCode.OUT_OF_MEMORY

    def test_incremental_stream(self) -> None:
        """Test a document split across chunks builds once finished."""
        parser = XMLParser()
        for chunk in ("<ro", 'ot a="1"><ite', "m>va", "lue</item></root>"):
            assert parser.load_stream(chunk)
        assert parser.finish_stream()

        root = parser.document.root
        assert root.get_attribute("a") == "1"
        assert root.children[0].contents == "value"

    def test_incremental_stream_reports_truncation(self) -> None:
        """Test finishing a stream mid-element is a tokenizer failure."""
        parser = XMLParser()
        assert parser.load_stream("<root><a>")

        assert parser.finish_stream().code is ErrorCode.TOKENIZER

    def test_feeding_after_failure_is_rejected(self) -> None:
        """Test further chunks after a failure report INTERNAL."""
        parser = XMLParser()
        assert parser.load_stream("<a>")
        assert parser.load_stream("</b>").code is ErrorCode.TOKENIZER

        assert parser.load_stream("<c/>").code is ErrorCode.INTERNAL


class TestStreamCallback:
    """Multiple top-level documents in one stream."""

    def test_callback_runs_per_document(self) -> None:
        """Test each completed root triggers the callback."""
        seen = []

        def collect(parser: XMLParser) -> bool:
            document = parser.detach_document()
            seen.append((document.root.name, document.root.contents))
            return True

        parser = XMLParser(stream_callback=collect)
        for chunk in ('<a x="1"/>\n  <b>t', "ext</b>", "\n<c/>\n"):
            assert parser.load_stream(chunk)
        assert parser.finish_stream()

        assert seen == [("a", None), ("b", "text"), ("c", None)]

    def test_callback_sees_whole_document(self) -> None:
        """Test the callback can read the finished tree before it is reset."""
        names = []

        def collect(parser: XMLParser) -> bool:
            names.append([child.name for child in parser.document.root.children])
            return True

        parser = XMLParser(ParserConfig.compact())
        parser.set_stream_callback(collect)
        assert parser.load_stream("<r>\n <x/>\n <y/>\n</r><r><z/></r>")

        assert names == [["x", "y"], ["z"]]

    def test_false_return_stops_with_callback_error(self) -> None:
        """Test a falsy callback result aborts the stream."""
        calls = []

        def stop(parser: XMLParser) -> bool:
            calls.append(parser.document.root.name)
            return False

        parser = XMLParser(stream_callback=stop)
        outcome = parser.load_stream("<a/><b/>")

        assert outcome.code is ErrorCode.CALLBACK
        assert calls == ["a"]
        assert last_error_code() is ErrorCode.CALLBACK
