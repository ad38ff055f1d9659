#!/usr/bin/env python3
"""
KUBEAPPLY DECODER - YAML to Manifest
------------------------------------
Turns one RawChunk into a Manifest. The chunk text is cleaned (BOM,
CRLF), parsed with ruamel.yaml's safe loader, then normalized into
plain JSON-compatible values so the result can be posted to the API
server unchanged.

A chunk that fails any of these steps becomes a DecodeError carrying
the best name we could recover; a chunk holding no document at all
(blank lines, comments) decodes to None and is dropped.

Author: KubeApply Team
"""

import base64
import datetime
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from kubeapply.core.models import Decoded, DecodeError, Manifest, RawChunk
from kubeapply.decoding.scanner import IdentityScanner


class StructureError(ValueError):
    """The document parsed, but is not a usable resource object."""


class ManifestDecoder:
    """
    Stateless apart from its YAML loader; one instance per decoding
    thread.
    """

    def __init__(self):
        self.yaml = YAML(typ='safe', pure=True)
        self.scanner = IdentityScanner()

    def _clean_artifacts(self, text: str) -> str:
        """Removes the UTF-8 BOM and standardizes line endings."""
        text = text.lstrip('\ufeff')
        return text.replace('\r\n', '\n')

    def decode(self, chunk: RawChunk) -> Optional[Decoded]:
        text = ""
        data = None
        try:
            text = self._clean_artifacts(chunk.data.decode('utf-8'))
            data = self.yaml.load(text)
            if data is None:
                return None
            content = self._check_structure(normalize(data))
        except (YAMLError, ValueError, TypeError, RecursionError) as e:
            # Bad typed scalars and runaway nesting surface as plain
            # ValueError / RecursionError from the constructor
            return DecodeError(name=self._best_effort_name(text, data), cause=e, index=chunk.index)
        return Manifest(content=content, index=chunk.index)

    def _check_structure(self, data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise StructureError(
                f"cannot unmarshal {type(data).__name__} into a resource object"
            )
        kind = data.get("kind")
        if not isinstance(kind, str) or not kind:
            raise StructureError("Object 'Kind' is missing")
        return data

    def _best_effort_name(self, text: str, data: Any = None) -> str:
        if isinstance(data, dict):
            metadata = data.get("metadata")
            if isinstance(metadata, dict) and isinstance(metadata.get("name"), str):
                return metadata["name"]
        if not text:
            return ""
        _, name = self.scanner.scan(text)
        return name or ""


def normalize(value: Any) -> Any:
    """Converts loader output into JSON-compatible values."""
    if isinstance(value, dict):
        return {_normalize_key(k): normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted((normalize(v) for v in value), key=str)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode('ascii')
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def _normalize_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    return str(normalize(key))
