"""Queue-backed channels for workers on the local machine.

ThreadChannel runs each worker in a thread, ProcessChannel in a
``multiprocessing`` process. Both give every worker its own inbox queue
and share one outbox queue back to the coordinator; a single producer per
queue keeps per-worker messages in send order.

The same coordinator runs unchanged over either one. Workers on remote
machines only need another Channel implementation.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
import queue
import threading
import time
from abc import abstractmethod
from typing import Any, Callable

from quadpool.channel.base import Channel, NodeID, WorkerEndpoint, node_name
from quadpool.exceptions import ChannelError
from quadpool.messages import Envelope, Message, MessageKind

logger = logging.getLogger(__name__)


class QueueEndpoint(WorkerEndpoint):
    """Worker end of a queue channel.

    Picklable while a process is being spawned, so it can be handed to a
    ``multiprocessing.Process`` as an argument.
    """

    def __init__(self, node_id: NodeID, inbox: Any, outbox: Any) -> None:
        self.node_id = node_id
        self._inbox = inbox
        self._outbox = outbox

    def send(self, message: Message) -> None:
        self._outbox.put((self.node_id, message))

    def recv(self) -> Message:
        return self._inbox.get()


class QueueChannel(Channel):
    """Coordinator end shared by the thread and process transports.

    Args:
        workers: Number of worker units to address.
        poll_interval: Seconds between liveness checks while waiting
            in ``recv``.
        join_timeout: Seconds to wait for each unit to exit on close.
    """

    def __init__(
        self,
        workers: int,
        *,
        poll_interval: float = 0.5,
        join_timeout: float = 5.0,
    ) -> None:
        self._ids: tuple[NodeID, ...] = tuple(node_name(i) for i in range(1, workers + 1))
        self._poll_interval = poll_interval
        self._join_timeout = join_timeout
        self._outbox = self._make_queue()
        self._inboxes: dict[NodeID, Any] = {nid: self._make_queue() for nid in self._ids}
        self._units: dict[NodeID, Any] = {}
        self._terminated: set[NodeID] = set()
        self._closed = False

    # ------------------------------------------------------------------
    # Transport hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _make_queue(self) -> Any:
        ...

    @abstractmethod
    def _make_unit(self, node_id: NodeID, target: Callable[..., None], args: tuple) -> Any:
        ...

    def _exit_detail(self, unit: Any) -> str:
        return ""

    def _stop_unit(self, unit: Any) -> None:
        """Force a unit that ignored TERMINATE to stop, if the transport can."""

    def _release_queues(self) -> None:
        """Free transport-level queue resources after the units are gone."""

    # ------------------------------------------------------------------
    # Channel API
    # ------------------------------------------------------------------

    @property
    def node_ids(self) -> tuple[NodeID, ...]:
        return self._ids

    def start(self, target: Callable[..., None], *args: Any) -> None:
        if self._units:
            raise ChannelError("Channel workers already started")
        for nid in self._ids:
            endpoint = QueueEndpoint(nid, self._inboxes[nid], self._outbox)
            unit = self._make_unit(nid, target, (endpoint, *args))
            unit.start()
            self._units[nid] = unit
        logger.debug("Started %d worker units (%s)", len(self._units), type(self).__name__)

    def send(self, node_id: NodeID, message: Message) -> None:
        if self._closed:
            raise ChannelError("Channel is closed", node_id=node_id)
        inbox = self._inboxes.get(node_id)
        if inbox is None:
            raise ChannelError("Unknown worker", node_id=node_id)
        try:
            inbox.put(message)
        except (OSError, ValueError) as e:
            raise ChannelError(f"Send failed: {e}", node_id=node_id) from e
        if message.kind == MessageKind.TERMINATE:
            self._terminated.add(node_id)

    def recv(self, timeout: float | None = None) -> Envelope:
        if self._closed:
            raise ChannelError("Channel is closed")
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            wait = self._poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ChannelError(f"No worker reply within {timeout:g}s")
                wait = min(wait, remaining)
            try:
                sender, message = self._outbox.get(timeout=wait)
            except queue.Empty:
                self.check_health()
                continue
            except (OSError, EOFError, ValueError) as e:
                raise ChannelError(f"Receive failed: {e}") from e
            return Envelope(sender, message)

    def check_health(self) -> None:
        """Raise ChannelError for the first worker unit that died unasked."""
        for nid, unit in self._units.items():
            if nid not in self._terminated and not unit.is_alive():
                raise ChannelError(
                    f"Worker exited unexpectedly{self._exit_detail(unit)}",
                    node_id=nid,
                )

    def close(self) -> None:
        if self._closed:
            return
        for nid, unit in self._units.items():
            if nid not in self._terminated and unit.is_alive():
                self.send(nid, Message.terminate())
        self._closed = True

        for nid, unit in self._units.items():
            unit.join(self._join_timeout)
            if unit.is_alive():
                logger.warning("%s did not exit within %.1fs", nid, self._join_timeout)
                self._stop_unit(unit)
        self._release_queues()


class ThreadChannel(QueueChannel):
    """Workers as daemon threads in this process."""

    def _make_queue(self) -> Any:
        return queue.Queue()

    def _make_unit(self, node_id: NodeID, target: Callable[..., None], args: tuple) -> Any:
        return threading.Thread(target=target, args=args, name=node_id, daemon=True)


class ProcessChannel(QueueChannel):
    """Workers as daemon processes.

    Args:
        start_method: ``multiprocessing`` start method (``fork``,
            ``spawn``, ``forkserver``); None uses the platform default.
            Under ``spawn`` and ``forkserver`` the worker target and its
            arguments, the integrand included, must be picklable.
    """

    def __init__(
        self,
        workers: int,
        *,
        start_method: str | None = None,
        poll_interval: float = 0.5,
        join_timeout: float = 5.0,
    ) -> None:
        self._ctx = mp.get_context(start_method)
        super().__init__(workers, poll_interval=poll_interval, join_timeout=join_timeout)

    def _make_queue(self) -> Any:
        return self._ctx.Queue()

    def _make_unit(self, node_id: NodeID, target: Callable[..., None], args: tuple) -> Any:
        return self._ctx.Process(target=target, args=args, name=node_id, daemon=True)

    def _exit_detail(self, unit: Any) -> str:
        return f" (exitcode={unit.exitcode})"

    def _stop_unit(self, unit: Any) -> None:
        unit.terminate()
        unit.join(self._join_timeout)

    def _release_queues(self) -> None:
        for q in (self._outbox, *self._inboxes.values()):
            q.close()
            q.cancel_join_thread()


def create_channel(
    kind: str,
    workers: int,
    *,
    start_method: str | None = None,
    poll_interval: float = 0.5,
    join_timeout: float = 5.0,
) -> QueueChannel:
    """Build the channel for a transport name (``process`` or ``thread``)."""
    if kind == "thread":
        return ThreadChannel(workers, poll_interval=poll_interval, join_timeout=join_timeout)
    if kind == "process":
        return ProcessChannel(
            workers,
            start_method=start_method,
            poll_interval=poll_interval,
            join_timeout=join_timeout,
        )
    raise ValueError(f"Unknown transport: {kind!r}")
