from dataclasses import dataclass
from typing import Optional

DEFAULT_MAX_CLIENTS = 10
DEFAULT_HOST = "0.0.0.0"
# One byte of headroom is kept, reads are BUFFER_SIZE - 1
BUFFER_SIZE = 1024


@dataclass(frozen=True)
class ServerConfig:
    port: int
    max_clients: int = DEFAULT_MAX_CLIENTS
    host: str = DEFAULT_HOST

    @classmethod
    def normalized(
        cls, port: int, max_clients: Optional[int] = None, host: Optional[str] = None
    ) -> "ServerConfig":
        # Non-positive or missing client counts fall back to the default
        if not max_clients or max_clients <= 0:
            max_clients = DEFAULT_MAX_CLIENTS
        return cls(port=port, max_clients=max_clients, host=host or DEFAULT_HOST)
