#!/usr/bin/env python3
"""
KUBEAPPLY SCANNER - The Archeologist
------------------------------------
Mines identity (kind and metadata.name) from document text that the
YAML parser rejected, so decode errors can still say which resource
they belong to.

Author: KubeApply Team
"""

import re
from typing import Optional, Tuple


class IdentityScanner:
    """
    Line-oriented, regex based. Only looks at top-level keys and the
    direct children of a top-level 'metadata' block.
    """

    # Group 1: Indent, Group 2: List dash, Group 3: Key, Group 4: Value
    LINE_PATTERN = re.compile(r'^(\s*)(?:(-\s*))?([\w\.\-\/]+)\s*:\s*(.*)$')

    def scan(self, raw_text: str) -> Tuple[Optional[str], Optional[str]]:
        """Returns (kind, name); either may be None."""
        kind = None
        name = None
        in_metadata = False
        child_indent = None

        for line in raw_text.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue

            match = self.LINE_PATTERN.match(line)
            if not match:
                continue
            indent_str, list_prefix, key, value = match.groups()
            indent = len(indent_str)

            if indent == 0 and not list_prefix:
                in_metadata = key == "metadata"
                child_indent = None
                if key == "kind" and value.strip():
                    kind = self._clean_id(value)
                continue

            if in_metadata and not list_prefix:
                # First child fixes the block's indentation
                if child_indent is None:
                    child_indent = indent
                if indent == child_indent and key == "name" and name is None:
                    name = self._clean_id(value) or None

        return kind, name

    def _clean_id(self, val: str) -> str:
        """Strips quotes and trailing comments from found identity markers."""
        val = val.split(" #", 1)[0]
        return val.strip().strip("'").strip('"')
