import logging
import socket
from typing import Tuple

from .config import DEFAULT_HOST
from .errors import AcceptError, BindError, ListenError, SocketCreateError
from .tables import ClientInfo

logger = logging.getLogger(__name__)


class Listener:
    def __init__(self, sock: socket.socket):
        self.sock = sock

    @classmethod
    def initialize(cls, port: int, backlog: int, host: str = DEFAULT_HOST) -> "Listener":
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            logger.error("socket(): %s", e)
            raise SocketCreateError(f"cannot create socket: {e}") from e

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
        except OSError as e:
            logger.error("bind(): %s", e)
            sock.close()
            raise BindError(f"cannot bind {host}:{port}: {e}") from e

        try:
            sock.listen(backlog)
        except OSError as e:
            logger.error("listen(): %s", e)
            sock.close()
            raise ListenError(f"cannot listen with backlog {backlog}: {e}") from e

        return cls(sock)

    @property
    def address(self) -> Tuple[str, int]:
        return self.sock.getsockname()

    def fileno(self) -> int:
        return self.sock.fileno()

    def accept(self) -> ClientInfo:
        try:
            csock, addr = self.sock.accept()
        except OSError as e:
            logger.error("accept(): %s", e)
            raise AcceptError(f"accept failed: {e}") from e
        # A send that would block fails instead, and the recipient is dropped
        csock.setblocking(False)
        client = ClientInfo(csock)
        logger.info("[id:%s] new client connect from %s:%s", client.id, addr[0], addr[1])
        return client

    def close(self):
        self.sock.close()
