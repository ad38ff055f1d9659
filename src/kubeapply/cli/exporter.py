#!/usr/bin/env python3
"""
KUBEAPPLY EXPORTER - Manifests back to YAML
-------------------------------------------
Author: KubeApply Team
"""

import io
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq


class ManifestExporter:
    """
    Converts decoded documents (plain dicts) back to YAML strings, with
    the conventional Kubernetes top-level key order.
    """

    def __init__(self):
        self.yaml = YAML(typ='rt')
        # Standard K8s: 2 spaces, sequences indented 4 (offset 2)
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.width = 4096
        self.preferred_order = ["apiVersion", "kind", "metadata", "spec", "data", "status"]

    def _get_sorted_map(self, data: Any) -> Any:
        """Recursively rebuilds dicts as CommentedMaps; lists keep their order."""
        if isinstance(data, list):
            return CommentedSeq(self._get_sorted_map(item) for item in data)
        if not isinstance(data, dict):
            return data

        keys = list(data.keys())

        def sort_logic(key):
            if key in self.preferred_order:
                return self.preferred_order.index(key)
            # Unknown keys keep their relative original position
            return len(self.preferred_order) + keys.index(key)

        sorted_map = CommentedMap()
        for key in sorted(keys, key=sort_logic):
            sorted_map[key] = self._get_sorted_map(data[key])
        return sorted_map

    def export_one(self, doc: Any) -> str:
        stream = io.StringIO()
        self.yaml.dump(self._get_sorted_map(doc), stream)
        return stream.getvalue()
