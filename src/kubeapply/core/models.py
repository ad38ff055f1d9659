#!/usr/bin/env python3
"""
KUBEAPPLY CORE MODELS
---------------------
Defines the fundamental data structures passed between the decoder,
the resolver and the batch engine.

A Manifest is the decoded form of one YAML document: a JSON-compatible
mapping with typed accessors for the handful of fields the tool reads.

Author: KubeApply Team
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Union

Path = Union[str, Sequence[str]]


@dataclass
class Manifest:
    """
    One decoded resource document.

    `content` only ever holds dict, list, str, int, float, bool or None,
    so it can be sent to the API server as-is.
    """
    content: Dict[str, Any]
    index: int = 0          # Position of the source chunk in the stream

    def get(self, path: Path, default: Any = None) -> Any:
        """Walks a dotted path ("metadata.name") or a tuple of keys."""
        keys = path.split(".") if isinstance(path, str) else list(path)
        node: Any = self.content
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def get_string(self, path: Path, default: str = "") -> str:
        value = self.get(path)
        return value if isinstance(value, str) else default

    @property
    def api_version(self) -> str:
        return self.get_string("apiVersion")

    @property
    def kind(self) -> str:
        return self.get_string("kind")

    @property
    def name(self) -> str:
        return self.get_string("metadata.name")

    @property
    def namespace(self) -> str:
        return self.get_string("metadata.namespace")


@dataclass
class DecodeError:
    """
    A document that could not be decoded. Never part of the document
    sequence; reported on the side with whatever name could be recovered.
    """
    name: str
    cause: Exception
    index: int = 0

    def __str__(self) -> str:
        return f"ERROR {self.name} {self.cause}"


@dataclass
class RawChunk:
    """The undecoded bytes of one document, as cut by the splitter."""
    index: int
    data: bytes


@dataclass
class ParsedStream:
    """The realized document sequence of one input plus its decode errors."""
    documents: List[Manifest] = field(default_factory=list)
    errors: List[DecodeError] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.documents)

    def __iter__(self):
        return iter(self.documents)


@dataclass(frozen=True)
class GroupVersionResource:
    group: str
    version: str
    resource: str

    def __str__(self) -> str:
        return f"{self.group}/{self.version}, Resource={self.resource}"


Decoded = Union[Manifest, DecodeError]
