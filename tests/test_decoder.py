#!/usr/bin/env python3
"""
KUBEAPPLY DECODER SUITE
-----------------------
Covers the three decoding stages on their own and wired together:
1. Splitting on document boundaries (including oversized documents)
2. Structural decoding and best-effort naming of broken documents
3. The threaded pipeline: ordering, error isolation, failure propagation
"""

import io

import pytest

from kubeapply.core.models import DecodeError, Manifest, RawChunk
from kubeapply.decoding.decoder import ManifestDecoder, normalize
from kubeapply.decoding.pipeline import DecodingPipeline
from kubeapply.decoding.scanner import IdentityScanner
from kubeapply.decoding.splitter import MIN_READ, DocumentSplitter


def _doc(name, kind="ConfigMap", api_version="v1", extra=""):
    return f"apiVersion: {api_version}\nkind: {kind}\nmetadata:\n  name: {name}\n{extra}"


THREE_DOCS = "---\n".join(_doc(n) for n in ["first", "second", "third"])


# --- Splitter ---

def test_split_on_separator_lines(stream_of):
    chunks = list(DocumentSplitter().split(stream_of(THREE_DOCS)))
    assert [c.index for c in chunks] == [0, 1, 2]
    assert b"name: second" in chunks[1].data


@pytest.mark.parametrize("separator", ["---\n", "---   \n", "--- # next one\n", "---\r\n"])
def test_separator_variants(stream_of, separator):
    text = _doc("a") + separator + _doc("b")
    assert len(list(DocumentSplitter().split(stream_of(text)))) == 2


def test_empty_documents_are_not_emitted(stream_of):
    text = "---\n---\n" + _doc("a") + "---\n---\n" + _doc("b") + "---\n"
    chunks = list(DocumentSplitter().split(stream_of(text)))
    assert len(chunks) == 2


def test_dashes_inside_a_value_are_not_a_boundary(stream_of):
    text = _doc("a", extra="data:\n  banner: |\n    ---- header ----\n")
    assert len(list(DocumentSplitter().split(stream_of(text)))) == 1


def test_document_larger_than_read_size_is_not_truncated(stream_of):
    payload = "x" * (MIN_READ * 20)
    text = _doc("big", extra=f"data:\n  blob: {payload}\n") + "---\n" + _doc("small")
    splitter = DocumentSplitter(max_read=MIN_READ)
    chunks = list(splitter.split(stream_of(text)))
    assert len(chunks) == 2
    assert payload.encode() in chunks[0].data


def test_read_size_follows_remaining_file_size(tmp_path):
    path = tmp_path / "m.yaml"
    path.write_text(_doc("a") * 100)
    size = path.stat().st_size
    with open(path, "rb") as f:
        assert DocumentSplitter().read_size(f) == max(MIN_READ, size)
        assert DocumentSplitter(max_read=1024).read_size(f) == min(max(MIN_READ, size), 1024)


# --- Decoder ---

def test_decode_valid_document():
    result = ManifestDecoder().decode(RawChunk(3, _doc("web").encode()))
    assert isinstance(result, Manifest)
    assert result.index == 3
    assert result.name == "web"
    assert result.kind == "ConfigMap"
    assert result.api_version == "v1"
    assert result.namespace == ""


def test_decode_strips_bom_and_crlf():
    raw = ("\ufeff" + _doc("bom")).replace("\n", "\r\n").encode("utf-8")
    result = ManifestDecoder().decode(RawChunk(0, raw))
    assert isinstance(result, Manifest)
    assert result.name == "bom"


@pytest.mark.parametrize("raw", [b"", b"\n\n", b"# only a comment\n"])
def test_empty_chunk_decodes_to_nothing(raw):
    assert ManifestDecoder().decode(RawChunk(0, raw)) is None


def test_invalid_yaml_reports_best_effort_name():
    raw = b"apiVersion: v1\nkind: Service\nmetadata:\n  name: broken-svc\nspec:\n  ports: [80\n"
    result = ManifestDecoder().decode(RawChunk(1, raw))
    assert isinstance(result, DecodeError)
    assert result.name == "broken-svc"
    assert result.index == 1


def test_missing_kind_is_a_structural_error():
    result = ManifestDecoder().decode(RawChunk(0, b"apiVersion: v1\nmetadata:\n  name: nokind\n"))
    assert isinstance(result, DecodeError)
    assert result.name == "nokind"
    assert "Kind" in str(result.cause)


@pytest.mark.parametrize("raw", [b"- a\n- b\n", b"just a scalar\n"])
def test_non_mapping_document_is_rejected(raw):
    result = ManifestDecoder().decode(RawChunk(0, raw))
    assert isinstance(result, DecodeError)
    assert result.name == ""


def test_invalid_utf8_is_rejected():
    result = ManifestDecoder().decode(RawChunk(0, b"kind: Pod\nmetadata:\n  name: \xff\xfe\n"))
    assert isinstance(result, DecodeError)


def test_flow_metadata_name_is_recovered_from_the_parsed_mapping():
    result = ManifestDecoder().decode(RawChunk(0, b"apiVersion: v1\nmetadata: {name: flowname}\n"))
    assert isinstance(result, DecodeError)
    assert result.name == "flowname"


def test_bad_typed_scalar_is_a_decode_error():
    raw = _doc("typed", extra="data:\n  n: !!int notanumber\n").encode()
    result = ManifestDecoder().decode(RawChunk(0, raw))
    assert isinstance(result, DecodeError)
    assert result.name == "typed"


def test_runaway_nesting_is_a_decode_error():
    raw = ("kind: ConfigMap\ndata: " + "[" * 3000 + "]" * 3000 + "\n").encode()
    result = ManifestDecoder().decode(RawChunk(0, raw))
    assert isinstance(result, DecodeError)


def test_normalize_makes_values_json_compatible():
    import datetime
    data = {1: "one", False: "no", "when": datetime.date(2024, 1, 2), "blob": b"hi", "list": ({"a": 1},)}
    assert normalize(data) == {
        "1": "one", "false": "no", "when": "2024-01-02", "blob": "aGk=", "list": [{"a": 1}],
    }


def test_scanner_only_reads_metadata_name():
    text = "kind: Deployment\nspec:\n  name: not-this\nmetadata:\n  labels:\n    name: nor-this\n  name: 'this-one'\n"
    assert IdentityScanner().scan(text) == ("Deployment", "this-one")


# --- Pipeline ---

def test_pipeline_preserves_count_and_order(stream_of):
    names = [f"doc-{i}" for i in range(50)]
    text = "---\n".join(_doc(n) for n in names)
    parsed = DecodingPipeline(depth=2).parse(stream_of(text))
    assert [m.name for m in parsed.documents] == names
    assert parsed.errors == []


def test_one_malformed_document_does_not_stop_the_stream(stream_of):
    broken = "apiVersion: v1\nkind: Secret\nmetadata:\n  name: truncated\ndata: {key: [\n"
    text = _doc("first") + "---\n" + broken + "---\n" + _doc("third")
    parsed = DecodingPipeline().parse(stream_of(text))
    assert [m.name for m in parsed.documents] == ["first", "third"]
    assert len(parsed.errors) == 1
    assert parsed.errors[0].name == "truncated"
    assert parsed.errors[0].index == 1


def test_bad_typed_scalar_does_not_stop_the_stream(stream_of):
    typed = _doc("typed", extra="data:\n  n: !!int notanumber\n")
    text = _doc("first") + "---\n" + typed + "---\n" + _doc("third")
    parsed = DecodingPipeline().parse(stream_of(text))
    assert [m.name for m in parsed.documents] == ["first", "third"]
    assert [e.name for e in parsed.errors] == ["typed"]


def test_stream_yields_errors_in_position(stream_of):
    text = _doc("a") + "---\n- not\n- a map\n---\n" + _doc("c")
    items = list(DecodingPipeline().stream(stream_of(text)))
    assert [type(i).__name__ for i in items] == ["Manifest", "DecodeError", "Manifest"]


def test_empty_stream(stream_of):
    parsed = DecodingPipeline().parse(stream_of(""))
    assert len(parsed) == 0
    assert parsed.errors == []


def test_decode_errors_are_traced_at_debug(stream_of, caplog):
    caplog.set_level("DEBUG", logger="kubeapply.decoder")
    DecodingPipeline().parse(stream_of("kind: [\nmetadata:\n  name: oops\n"))
    assert any("ERROR oops" in r.getMessage() for r in caplog.records)
    assert all(r.levelname == "DEBUG" for r in caplog.records if r.name == "kubeapply.decoder")


class _ExplodingStream(io.RawIOBase):
    """Serves one document, then fails like a broken disk."""

    def __init__(self):
        super().__init__()
        self.served = False

    def readable(self):
        return True

    def read(self, size=-1):
        if not self.served:
            self.served = True
            return _doc("only").encode() + b"---\n"
        raise OSError("I/O error")


def test_read_failure_is_raised_to_the_consumer():
    with pytest.raises(OSError, match="I/O error"):
        DecodingPipeline().parse(_ExplodingStream())


def test_closing_the_stream_early_stops_the_workers(stream_of):
    text = "---\n".join(_doc(f"d{i}") for i in range(100))
    items = DecodingPipeline(depth=1).stream(stream_of(text))
    assert next(items).name == "d0"
    items.close()
