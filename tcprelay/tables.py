# In-memory membership table for connected clients

import logging
import socket
from typing import Iterator, List, Tuple

from .errors import RegistryFullError

logger = logging.getLogger(__name__)


class ClientInfo:
    def __init__(self, sock: socket.socket):
        self.sock = sock
        # Cached so log lines still carry the id after close()
        self.id = sock.fileno()

    def fileno(self) -> int:
        return self.sock.fileno()

    def close(self):
        try:
            self.sock.close()
        except OSError as e:
            logger.debug("[id:%s] close failed: %s", self.id, e)

    def __repr__(self) -> str:
        return f"ClientInfo(id={self.id})"


class MembershipRegistry:
    """Ordered, capacity-bounded list of connected clients.

    Removal compacts the list, so indices stay dense but a client's index
    can shift down after an earlier entry is removed.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._clients: List[ClientInfo] = []

    def __len__(self) -> int:
        return len(self._clients)

    def __iter__(self) -> Iterator[ClientInfo]:
        return iter(self._clients)

    def __getitem__(self, index: int) -> ClientInfo:
        return self._clients[index]

    def is_full(self) -> bool:
        return len(self._clients) >= self.capacity

    def add(self, client: ClientInfo) -> int:
        if self.is_full():
            raise RegistryFullError(
                f"registry full ({self.capacity} clients), cannot add {client!r}"
            )
        if any(c.sock is client.sock for c in self._clients):
            raise ValueError(f"{client!r} already registered")
        self._clients.append(client)
        return len(self._clients) - 1

    def remove(self, index: int) -> ClientInfo:
        if index < 0 or index >= len(self._clients):
            raise IndexError(f"no client at index {index}")
        client = self._clients[index]
        client.close()
        del self._clients[index]
        logger.info("[id:%s] client removed (%d connected)", client.id, len(self))
        return client

    def for_each(self) -> Iterator[Tuple[int, ClientInfo]]:
        i = 0
        while i < len(self._clients):
            yield i, self._clients[i]
            i += 1

    def index_of(self, sock: socket.socket) -> int:
        for i, c in enumerate(self._clients):
            if c.sock is sock:
                return i
        raise ValueError("socket not registered")

    def sockets(self) -> List[socket.socket]:
        return [c.sock for c in self._clients]
