#!/usr/bin/env python3
"""
KUBEAPPLY CLI
-------------
    kubeapply FILE              print every decoded document
    kubeapply FILE get          fetch the live object behind each document
    kubeapply FILE create       create every document, in file order
    kubeapply FILE delete       delete every document, in reverse file order

Any other command prints usage and does nothing. Fatal errors (file
cannot be opened, context cannot be loaded, batch aborted) exit with 1;
per-item failures are reported but do not change the exit status.

Author: KubeApply Team
"""

import sys
import argparse
from typing import Callable, List, Optional

from rich.console import Console
from rich.markup import escape

from kubeapply.cli.formatter import KubeFormatter
from kubeapply.cluster.context import load_client
from kubeapply.config import ApplyConfig
from kubeapply.core.engine import BatchExecutor
from kubeapply.core.errors import (
    BatchAbortedError,
    ContextLoadError,
    KubeApplyError,
    ManifestSourceError,
)
from kubeapply.core.models import ParsedStream
from kubeapply.decoding.pipeline import DecodingPipeline
from kubeapply.logging_config import setup_logging
from kubeapply.resolver.endpoint import EndpointResolver, discover_kinds

VERSION = "0.1.0"
REMOTE_COMMANDS = ("get", "create", "delete")

# Global console for consistent styling across the application
console = Console()


class KubeApplyCLI:
    """
    CLI wrapper that turns a file and a command into one batch run.
    The store client is built here, once, and handed to the resolver.
    """

    def __init__(self, out: Optional[Console] = None,
                 client_factory: Callable = load_client):
        self.console = out or console
        self.formatter = KubeFormatter(self.console)
        self.client_factory = client_factory
        self.parser = argparse.ArgumentParser(
            prog="kubeapply",
            description="KubeApply - apply, inspect or tear down multi-document Kubernetes manifests",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self._setup_args()

    def _setup_args(self):
        self.parser.add_argument("-v", "--version", action="version", version=f"kubeapply v{VERSION}")
        self.parser.add_argument("filename", nargs="?", help="Multi-document YAML manifest file")
        self.parser.add_argument("command", nargs="?", default="",
                                 help="get | create | delete (omit to print the decoded documents)")
        self.parser.add_argument("--context", default=None, help="Kubeconfig context (default: current)")
        self.parser.add_argument("--kubeconfig", default=None, help="Path to the kubeconfig file")
        self.parser.add_argument("--discover", action="store_true", default=None,
                                 help="Resolve resource names from the API server's discovery data")
        self.parser.add_argument("--depth", type=int, default=None,
                                 help="Decoder read-ahead, in documents (default: 10)")
        self.parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")

    def usage(self):
        self.console.print(f"Usage: {self.parser.prog} filename [get|create|delete]", markup=False)

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point. Returns the process exit code."""
        args = self.parser.parse_args(argv)
        if args.filename is None:
            self.formatter.print_header("Multi-document Manifest Runner", VERSION)
            self.usage()
            return 0
        if args.command and args.command not in REMOTE_COMMANDS:
            self.usage()
            return 0

        config = ApplyConfig.from_env().override(
            context=args.context,
            kubeconfig=args.kubeconfig,
            discover=args.discover,
            depth=args.depth,
            log_level=args.log_level.upper() if args.log_level else None,
        )
        setup_logging(config.log_level)

        try:
            return self._execute(args.filename, args.command, config)
        except BatchAbortedError as e:
            self.formatter.print_final_table(e.operation, e.reports)
            self.console.print(f"[bold red]CRITICAL ERROR:[/bold red] {escape(str(e))}")
            return 1
        except KubeApplyError as e:
            self.console.print(f"[bold red]CRITICAL ERROR:[/bold red] {escape(str(e))}")
            return 1

    def _build_executor(self, config: ApplyConfig) -> BatchExecutor:
        client = self.client_factory(config.context, config.kubeconfig)
        kinds = None
        if config.discover:
            try:
                kinds = discover_kinds(client)
            except Exception as e:
                raise ContextLoadError(f"Discovery failed: {e}") from e
        return BatchExecutor(EndpointResolver(client, kinds))

    def _parse(self, filename: str, config: ApplyConfig) -> ParsedStream:
        pipeline = DecodingPipeline(depth=config.depth, max_read=config.max_read)
        try:
            source = open(filename, "rb")
        except OSError as e:
            raise ManifestSourceError(f"Unable to open '{filename}': {e}") from e
        with source:
            try:
                return pipeline.parse(source)
            except OSError as e:
                raise ManifestSourceError(f"Unable to read '{filename}': {e}") from e

    def _execute(self, filename: str, command: str, config: ApplyConfig) -> int:
        # The client comes first: no partial work when the context is unusable
        executor = self._build_executor(config) if command else None
        parsed = self._parse(filename, config)

        if executor is None:
            for manifest in parsed.documents:
                self.formatter.show_document(manifest)
            self.formatter.show_decode_errors(parsed.errors)
            return 0

        operations = {
            "get": executor.inspect,
            "create": executor.create,
            "delete": executor.delete,
        }
        reports = operations[command](parsed.documents)

        if command == "get":
            for report in reports:
                self.formatter.show_object(report.get("object"))
        self.formatter.show_decode_errors(parsed.errors)
        self.formatter.print_final_table(command, reports)
        self.formatter.print_summary(executor.generate_summary(reports))
        return 0


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(KubeApplyCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(130)


if __name__ == "__main__":
    main()
