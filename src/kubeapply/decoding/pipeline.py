#!/usr/bin/env python3
"""
KUBEAPPLY DECODING PIPELINE - The Conveyor
------------------------------------------
Central coordinator for reading a manifest stream. Two worker threads
run side by side:

    reader  : byte stream -> DocumentSplitter -> chunk queue
    decoder : chunk queue -> ManifestDecoder  -> result queue

The consumer pulls from the result queue. Both queues are bounded, so
the reader blocks once it is `depth` chunks ahead of the decoder, and
the decoder blocks once it is `depth` results ahead of the consumer.
Every stage is FIFO over a single stream, so results come out in
source order.

Author: KubeApply Team
"""

import logging
import queue
import threading
from typing import Any, BinaryIO, Iterator, Optional

from kubeapply.core.models import Decoded, DecodeError, ParsedStream
from kubeapply.decoding.decoder import ManifestDecoder
from kubeapply.decoding.splitter import DEFAULT_MAX_READ, DocumentSplitter

logger = logging.getLogger("kubeapply.decoder")

DEFAULT_DEPTH = 10


class _Done:
    """End-of-stream marker."""


class _Failure:
    """Carries an exception from a worker thread to the consumer."""

    def __init__(self, exc: BaseException):
        self.exc = exc


class DecodingPipeline:
    """
    Produces the ordered document sequence of one input stream.
    Malformed documents are reported as DecodeError items and never stop
    the stream; I/O failures in the reader are re-raised to the consumer.
    """

    def __init__(self, depth: int = DEFAULT_DEPTH, max_read: int = DEFAULT_MAX_READ):
        self.depth = max(1, depth)
        self.max_read = max_read

    def _put(self, q: queue.Queue, item: Any, stop: threading.Event) -> bool:
        """Blocking put that gives up once the consumer has gone away."""
        while not stop.is_set():
            try:
                q.put(item, timeout=0.1)
                return True
            except queue.Full:
                continue
        return False

    def _get(self, q: queue.Queue, stop: threading.Event) -> Any:
        while not stop.is_set():
            try:
                return q.get(timeout=0.1)
            except queue.Empty:
                continue
        return _Done()

    def _read(self, source: BinaryIO, chunks: queue.Queue, stop: threading.Event):
        splitter = DocumentSplitter(max_read=self.max_read)
        try:
            for chunk in splitter.split(source):
                if not self._put(chunks, chunk, stop):
                    return
        except Exception as e:
            logger.debug("Reader stopped: %s", e)
            self._put(chunks, _Failure(e), stop)
        finally:
            self._put(chunks, _Done(), stop)

    def _decode(self, chunks: queue.Queue, results: queue.Queue, stop: threading.Event):
        decoder = ManifestDecoder()
        try:
            while True:
                item = self._get(chunks, stop)
                if isinstance(item, (_Done, _Failure)):
                    self._put(results, item, stop)
                    if isinstance(item, _Done):
                        return
                    continue
                decoded = decoder.decode(item)
                if decoded is not None and not self._put(results, decoded, stop):
                    return
        except Exception as e:
            self._put(results, _Failure(e), stop)
            self._put(results, _Done(), stop)

    def stream(self, source: BinaryIO) -> Iterator[Decoded]:
        """
        Lazily yields Manifest and DecodeError items in source order.
        Closing the generator early stops both workers.
        """
        chunks: queue.Queue = queue.Queue(maxsize=self.depth)
        results: queue.Queue = queue.Queue(maxsize=self.depth)
        stop = threading.Event()

        workers = [
            threading.Thread(target=self._read, args=(source, chunks, stop),
                             name="kubeapply-reader", daemon=True),
            threading.Thread(target=self._decode, args=(chunks, results, stop),
                             name="kubeapply-decoder", daemon=True),
        ]
        for worker in workers:
            worker.start()

        failure: Optional[BaseException] = None
        try:
            while True:
                item = results.get()
                if isinstance(item, _Done):
                    break
                if isinstance(item, _Failure):
                    # Keep draining so the reader can finish, then raise
                    failure = failure or item.exc
                    continue
                yield item
        finally:
            stop.set()
            for worker in workers:
                worker.join(timeout=1.0)

        if failure is not None:
            raise failure

    def parse(self, source: BinaryIO) -> ParsedStream:
        """Drains the stream into a ParsedStream; decode errors are collected, not raised."""
        parsed = ParsedStream()
        for item in self.stream(source):
            if isinstance(item, DecodeError):
                logger.debug("%s", item)
                parsed.errors.append(item)
            else:
                parsed.documents.append(item)
        logger.debug("Decoded %d documents (%d errors)", len(parsed.documents), len(parsed.errors))
        return parsed
