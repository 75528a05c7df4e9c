"""Channel package -- message transport between coordinator and workers."""

from quadpool.channel.base import Channel, NodeID, WorkerEndpoint, node_name
from quadpool.channel.local import (
    ProcessChannel,
    QueueChannel,
    QueueEndpoint,
    ThreadChannel,
    create_channel,
)

__all__ = [
    "Channel",
    "NodeID",
    "WorkerEndpoint",
    "node_name",
    "QueueChannel",
    "QueueEndpoint",
    "ThreadChannel",
    "ProcessChannel",
    "create_channel",
]
