#!/usr/bin/env python3
"""
KUBEAPPLY ENDPOINT RESOLVER
---------------------------
Maps a decoded Manifest to the collection endpoint it lives in:

    apiVersion  -> (group, version)
    kind        -> resource name (explicit kind table, else pluralizer)
    namespace   -> namespaced or cluster-scoped handle

Handles are built fresh for every document and never cached. They wrap
a kubernetes.dynamic.Resource built directly from the group, version
and resource name, so no discovery round-trip is needed per document.

Author: KubeApply Team
"""

import logging
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple

from kubernetes.dynamic.resource import Resource

from kubeapply.core.errors import MalformedVersionError
from kubeapply.core.models import GroupVersionResource, Manifest
from kubeapply.resolver.pluralizer import resource_name

logger = logging.getLogger("kubeapply.resolver")


class StoreClient(Protocol):
    """The subset of kubernetes.dynamic.DynamicClient we rely on."""

    def create(self, resource: Resource, body: Any = None, namespace: Optional[str] = None, **kwargs) -> Any:
        ...

    def get(self, resource: Resource, name: Optional[str] = None, namespace: Optional[str] = None, **kwargs) -> Any:
        ...

    def delete(self, resource: Resource, name: Optional[str] = None, namespace: Optional[str] = None, **kwargs) -> Any:
        ...


def parse_group_version(value: str) -> Tuple[str, str]:
    """
    Splits an apiVersion into (group, version).
    "" and "/" give an empty pair, "v1" is the core group, anything with
    more than one slash is malformed.
    """
    if not value or value == "/":
        return "", ""
    slashes = value.count("/")
    if slashes == 0:
        return "", value
    if slashes == 1:
        group, version = value.split("/")
        return group, version
    raise MalformedVersionError(value)


class EndpointHandle:
    """create/get/delete against one collection, optionally namespace-scoped."""

    def __init__(self, client: StoreClient, gvr: GroupVersionResource,
                 kind: str, namespace: Optional[str] = None):
        self.client = client
        self.gvr = gvr
        self.namespace = namespace or None
        self.resource = Resource(
            prefix="apis" if gvr.group else "api",
            group=gvr.group,
            api_version=gvr.version,
            kind=kind,
            namespaced=self.namespace is not None,
            name=gvr.resource,
            client=client,
        )

    @property
    def namespaced(self) -> bool:
        return self.namespace is not None

    def create(self, payload: Dict[str, Any]) -> Any:
        return self.client.create(self.resource, body=payload, namespace=self.namespace)

    def get(self, name: str) -> Any:
        return self.client.get(self.resource, name=name, namespace=self.namespace)

    def delete(self, name: str) -> Any:
        return self.client.delete(self.resource, name=name, namespace=self.namespace)

    def __repr__(self) -> str:
        scope = f"namespace={self.namespace}" if self.namespaced else "cluster"
        return f"<EndpointHandle {self.gvr} ({scope})>"


class EndpointResolver:
    """
    Resolves manifests against one store client. `kinds` is an optional
    explicit kind -> resource table (see discover_kinds).
    """

    def __init__(self, client: StoreClient, kinds: Optional[Mapping[str, str]] = None):
        self.client = client
        self.kinds = dict(kinds or {})

    def group_version_resource(self, manifest: Manifest) -> GroupVersionResource:
        group, version = parse_group_version(manifest.api_version)
        return GroupVersionResource(group, version, resource_name(manifest.kind, self.kinds))

    def resolve(self, manifest: Manifest) -> EndpointHandle:
        gvr = self.group_version_resource(manifest)
        logger.info("%s", gvr)
        return EndpointHandle(self.client, gvr, manifest.kind, manifest.namespace)


def discover_kinds(client: Any) -> Dict[str, str]:
    """
    Builds a kind -> resource table from the API server's discovery data.
    Preferred versions win; list kinds and subresources are skipped.
    """
    table: Dict[str, str] = {}
    preferred: Dict[str, bool] = {}
    for resource in client.resources.search():
        name = getattr(resource, "name", None)
        kind = getattr(resource, "kind", None)
        if not name or not kind or "/" in name:
            continue
        is_preferred = bool(getattr(resource, "preferred", False))
        if kind not in table or (is_preferred and not preferred[kind]):
            table[kind] = name
            preferred[kind] = is_preferred
    logger.debug("Discovered %d kinds", len(table))
    return table
