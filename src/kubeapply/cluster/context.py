"""Builds the process-wide store client from kubeconfig."""

import logging
from typing import Optional

from kubernetes import config
from kubernetes.dynamic import DynamicClient

from kubeapply.core.errors import ContextLoadError

logger = logging.getLogger("kubeapply.cluster")


def load_client(context: str = "", config_file: Optional[str] = None) -> DynamicClient:
    """
    Loads the named kubeconfig context (the current one when empty) and
    returns a DynamicClient. Any failure is fatal to the caller.
    """
    logger.info("Connecting to Kubernetes Context %s", context)
    try:
        api_client = config.new_client_from_config(
            config_file=config_file,
            context=context or None,
        )
        return DynamicClient(api_client)
    except Exception as e:
        raise ContextLoadError(f"Unable to load Kubernetes context '{context}': {e}") from e
