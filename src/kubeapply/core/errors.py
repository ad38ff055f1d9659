"""Exception taxonomy for kubeapply."""

from typing import Any, Dict, List, Optional


class KubeApplyError(Exception):
    """Base class for every error the CLI turns into a non-zero exit."""


class ManifestSourceError(KubeApplyError):
    """The manifest file could not be opened."""


class ContextLoadError(KubeApplyError):
    """The kubeconfig context could not be turned into a client."""


class MalformedVersionError(KubeApplyError):
    """An apiVersion that is not of the form [group/]version."""

    def __init__(self, api_version: str):
        super().__init__(f"unexpected GroupVersion string: {api_version}")
        self.api_version = api_version


class BatchAbortedError(KubeApplyError):
    """
    Raised when a batch stops part-way because a document could not be
    resolved to an endpoint. Items already processed stay processed.
    """

    def __init__(self, operation: str, name: str, cause: Exception,
                 reports: Optional[List[Dict[str, Any]]] = None):
        super().__init__(f"{operation} aborted at '{name}': {cause}")
        self.operation = operation
        self.name = name
        self.cause = cause
        self.reports = reports or []
