"""Channel abstractions.

A Channel is the coordinator's view of the transport: it addresses
workers by a stable NodeID, sends to one worker at a time and receives
from any. A WorkerEndpoint is a single worker's view: one inbox, one
route back to the coordinator.

Messages between one worker and the coordinator arrive in send order.
Nothing is guaranteed across workers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from quadpool.messages import Envelope, Message

NodeID = str


def node_name(index: int) -> NodeID:
    """Stable worker identifier for the ``index``-th unit (1-based)."""
    return f"worker-{index}"


class WorkerEndpoint(ABC):
    """A worker's end of the channel."""

    node_id: NodeID

    @abstractmethod
    def send(self, message: Message) -> None:
        """Send a message to the coordinator."""

    @abstractmethod
    def recv(self) -> Message:
        """Block until the coordinator sends this worker a message."""


class Channel(ABC):
    """The coordinator's end of the channel.

    Usage::

        with ThreadChannel(workers=4) as channel:
            channel.start(run_worker, integrand, limits, settings)
            envelope = channel.recv()
            channel.send(envelope.sender, Message.terminate())
    """

    @property
    @abstractmethod
    def node_ids(self) -> tuple[NodeID, ...]:
        """Identifiers of every worker reachable through this channel."""

    @abstractmethod
    def start(self, target: Callable[..., None], *args: Any) -> None:
        """Launch one worker unit per node running ``target(endpoint, *args)``."""

    @abstractmethod
    def send(self, node_id: NodeID, message: Message) -> None:
        """Deliver ``message`` to one worker.

        Raises:
            ChannelError: If the node is unknown or the channel is closed.
        """

    @abstractmethod
    def recv(self, timeout: float | None = None) -> Envelope:
        """Block until any worker sends a message.

        Raises:
            ChannelError: If a worker is lost or ``timeout`` expires.
        """

    @abstractmethod
    def close(self) -> None:
        """Release worker units and transport resources."""

    def __enter__(self) -> Channel:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
