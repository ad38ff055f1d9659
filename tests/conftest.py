import io
import logging
import os
import sys

import pytest

# Ensure the 'src' directory is in the python path so we can import kubeapply
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from kubeapply.core.models import Manifest


class FakeStoreClient:
    """
    Records every call made through an EndpointHandle, in order.
    Names listed in `failing` raise on any operation.
    """

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def _record(self, verb, resource, name, namespace):
        self.calls.append((verb, resource.name, name, namespace))
        if name in self.failing:
            raise RuntimeError(f"{verb} {name}: the server rejected the request")

    def create(self, resource, body=None, namespace=None, **kwargs):
        self._record("create", resource, body["metadata"]["name"], namespace)
        return body

    def get(self, resource, name=None, namespace=None, **kwargs):
        self._record("get", resource, name, namespace)
        return {"apiVersion": resource.group_version, "kind": resource.kind,
                "metadata": {"name": name, "uid": f"uid-{name}"}}

    def delete(self, resource, name=None, namespace=None, **kwargs):
        self._record("delete", resource, name, namespace)
        return {"status": "Success"}

    def names(self, verb):
        return [call[2] for call in self.calls if call[0] == verb]


def make_manifest(name, kind="ConfigMap", api_version="v1", namespace=None, index=0):
    metadata = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    return Manifest(
        content={"apiVersion": api_version, "kind": kind, "metadata": metadata},
        index=index,
    )


@pytest.fixture(autouse=True)
def reset_kubeapply_logging():
    """The CLI installs its own handlers; undo that so caplog keeps working."""
    yield
    logger = logging.getLogger("kubeapply")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def store():
    return FakeStoreClient()


@pytest.fixture
def manifests():
    return [make_manifest(n, index=i) for i, n in enumerate(["a", "b", "c"])]


@pytest.fixture
def stream_of():
    """Builds an in-memory byte stream from YAML text."""
    def _build(text):
        return io.BytesIO(text.encode("utf-8") if isinstance(text, str) else text)
    return _build
