import logging
from enum import Enum
from typing import Optional

from .config import BUFFER_SIZE, ServerConfig
from .errors import AcceptError
from .multiplexer import EventMultiplexer
from .tables import ClientInfo, MembershipRegistry
from .transport import Listener

logger = logging.getLogger(__name__)


class LoopState(Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"


class RelayCore:
    def __init__(
        self,
        listener: Listener,
        max_clients: int,
        multiplexer: Optional[EventMultiplexer] = None,
    ):
        self.listener = listener
        self.registry = MembershipRegistry(max_clients)
        self.multiplexer = multiplexer or EventMultiplexer()
        self.state = LoopState.IDLE

    def watch_set(self) -> list:
        return [self.listener.sock] + self.registry.sockets()

    def run_once(self):
        self.state = LoopState.IDLE
        ready = self.multiplexer.wait(self.watch_set())
        self.state = LoopState.DISPATCHING
        try:
            if self.listener.sock in ready:
                # Pending client data waits for the next iteration
                self.handle_new_connection()
                return

            # Snapshot first: reads and broadcasts below can remove clients
            pending = [c for c in self.registry if c.sock in ready]
            for client in pending:
                try:
                    index = self.registry.index_of(client.sock)
                except ValueError:
                    # Dropped while relaying an earlier chunk this iteration
                    continue
                self.handle_client_readable(index)
        finally:
            self.state = LoopState.IDLE

    def serve_forever(self):
        while True:
            self.run_once()

    def handle_new_connection(self) -> Optional[ClientInfo]:
        try:
            client = self.listener.accept()
        except AcceptError:
            return None

        if self.registry.is_full():
            logger.warning(
                "[id:%s] refused: limit of %d clients reached",
                client.id,
                self.registry.capacity,
            )
            client.close()
            return None

        self.registry.add(client)
        logger.info("[id:%s] registered (%d connected)", client.id, len(self.registry))
        return client

    def handle_client_readable(self, index: int):
        client = self.registry[index]
        try:
            data = client.sock.recv(BUFFER_SIZE - 1)
        except OSError as e:
            logger.info("[id:%s] read failed: %s", client.id, e)
            data = b""

        if not data:
            logger.info("[id:%s] client disconnected", client.id)
            self.registry.remove(index)
            return

        logger.info(
            "[id:%s] new client data - (%d) <%s>",
            client.id,
            len(data),
            data.decode("utf-8", errors="replace"),
        )
        self.broadcast(data)

    def broadcast(self, payload: bytes):
        # Sender included, every registered client gets the chunk
        i = 0
        while i < len(self.registry):
            recipient = self.registry[i]
            try:
                recipient.sock.sendall(payload)
            except OSError as e:
                logger.warning("[id:%s] send failed: %s", recipient.id, e)
                # Entries shift down, so i now points at the next recipient
                self.registry.remove(i)
            else:
                i += 1

    def close(self):
        while len(self.registry):
            self.registry.remove(len(self.registry) - 1)
        self.listener.close()


def main_loop(config: ServerConfig):
    listener = Listener.initialize(config.port, config.max_clients, host=config.host)
    logger.info(
        "The server is running with socket %s on port %s",
        listener.fileno(),
        config.port,
    )
    logger.info(
        "The server is limited to %d simultaneous connections", config.max_clients
    )
    core = RelayCore(listener, config.max_clients)
    try:
        core.serve_forever()
    finally:
        core.close()
