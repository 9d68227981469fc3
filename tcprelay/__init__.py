from .config import BUFFER_SIZE, DEFAULT_MAX_CLIENTS, ServerConfig
from .errors import (
    AcceptError,
    BindError,
    ListenError,
    MultiplexError,
    RegistryFullError,
    RelayError,
    SetupError,
    SocketCreateError,
)
from .multiplexer import EventMultiplexer
from .relay_core import LoopState, RelayCore, main_loop
from .tables import ClientInfo, MembershipRegistry
from .transport import Listener
