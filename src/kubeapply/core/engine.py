#!/usr/bin/env python3
"""
KUBEAPPLY ENGINE - The Batch Orchestrator
-----------------------------------------
The BatchExecutor runs one operation (inspect, create or delete) over a
fully decoded document sequence, one document at a time.

Ordering rules:
    inspect / create : source order
    delete           : reverse source order, on a copy of the sequence

Failure rules:
    remote call fails   -> logged, recorded in the item report, batch goes on
    resolution fails    -> BatchAbortedError, nothing after it is attempted

Author: KubeApply Team
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from kubeapply.core.errors import BatchAbortedError, KubeApplyError
from kubeapply.core.models import Manifest
from kubeapply.resolver.endpoint import EndpointHandle, EndpointResolver

logger = logging.getLogger("kubeapply.engine")

Report = Dict[str, Any]


class BatchExecutor:
    """
    Applies batch operations through an EndpointResolver. Holds no state
    between calls; the resolver carries the injected store client.
    """

    def __init__(self, resolver: EndpointResolver):
        self.resolver = resolver

    def inspect(self, manifests: Sequence[Manifest]) -> List[Report]:
        """Fetches the live object behind every manifest, in source order."""
        return self._run("get", manifests, self._inspect_one)

    def create(self, manifests: Sequence[Manifest]) -> List[Report]:
        """Creates every manifest, in source order."""
        return self._run("create", manifests, self._create_one)

    def delete(self, manifests: Sequence[Manifest]) -> List[Report]:
        """Deletes every manifest, last one first. `manifests` is left untouched."""
        return self._run("delete", list(reversed(manifests)), self._delete_one)

    def _run(self, operation: str, manifests: Sequence[Manifest],
             action: Callable[[EndpointHandle, Manifest], Report]) -> List[Report]:
        reports: List[Report] = []
        for manifest in manifests:
            try:
                handle = self.resolver.resolve(manifest)
            except KubeApplyError as e:
                logger.error("ERROR %s %s", manifest.name, e)
                reports.append(self._item_report(operation, manifest, None, "ABORTED", error=e))
                raise BatchAbortedError(operation, manifest.name, e, reports) from e

            try:
                reports.append(action(handle, manifest))
            except Exception as e:
                logger.error("ERROR %s %s", manifest.name, e)
                reports.append(self._item_report(operation, manifest, handle, "FAILED", error=e))
        return reports

    def _inspect_one(self, handle: EndpointHandle, manifest: Manifest) -> Report:
        live = handle.get(manifest.name)
        obj = _as_dict(live)
        logger.debug("Fetched %s/%s", manifest.kind, manifest.name)
        return self._item_report("get", manifest, handle, "FOUND", obj=obj)

    def _create_one(self, handle: EndpointHandle, manifest: Manifest) -> Report:
        created = handle.create(manifest.content)
        return self._item_report("create", manifest, handle, "CREATED", obj=_as_dict(created))

    def _delete_one(self, handle: EndpointHandle, manifest: Manifest) -> Report:
        handle.delete(manifest.name)
        return self._item_report("delete", manifest, handle, "DELETED")

    def _item_report(self, operation: str, manifest: Manifest, handle: Optional[EndpointHandle],
                     status: str, obj: Any = None, error: Optional[Exception] = None) -> Report:
        return {
            "index": manifest.index,
            "name": manifest.name,
            "kind": manifest.kind or "Unknown",
            "namespace": manifest.namespace,
            "endpoint": str(handle.gvr) if handle else None,
            "operation": operation,
            "status": status,
            "success": error is None,
            "error": str(error) if error else None,
            "object": obj,
        }

    def generate_summary(self, reports: List[Report]) -> Dict[str, Any]:
        """Counts per-item outcomes of one batch."""
        if not reports:
            return {"total": 0, "successful": 0, "failed": 0, "success_rate": 0}

        total = len(reports)
        successful = sum(1 for r in reports if r.get("success", False))
        return {
            "total": total,
            "successful": successful,
            "failed": total - successful,
            "success_rate": successful / total,
        }


def _as_dict(obj: Any) -> Any:
    """ResourceInstance and friends expose to_dict(); plain values pass through."""
    if obj is None:
        return None
    to_dict = getattr(obj, "to_dict", None)
    return to_dict() if callable(to_dict) else obj
