import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from callwire.core.transport.protocol import Protocol


@dataclass
class ServerState:
    """
    Shared runtime state for a CallServer.

    This object is mutated by:
    - Protocol: adds/removes active connections and registers the task
      running the per-connection application
    - CallServer.shutdown(): waits for connections and tasks to complete
    """
    connections: set["Protocol"] = field(default_factory=set)
    """
    Set of active Protocol instances. Each TCP connection corresponds
    to one Protocol.
    """

    tasks: set[asyncio.Task[None]] = field(default_factory=set)
    """
    Set of tasks running an application, one per connection.
    Each task is removed via task.add_done_callback(tasks.discard).
    """
