from typing import Optional


class RelayError(Exception):
    pass


class SetupError(RelayError):
    """Listening socket could not be brought up; the relay does not start."""


class SocketCreateError(SetupError):
    pass


class BindError(SetupError):
    pass


class ListenError(SetupError):
    pass


class AcceptError(RelayError):
    pass


class RegistryFullError(RelayError):
    pass


class MultiplexError(RelayError):
    def __init__(self, message: str, errno: Optional[int] = None):
        super().__init__(message)
        self.errno = errno
