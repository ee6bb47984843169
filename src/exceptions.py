class RelayError(RuntimeError):
    """Base failure for upstream-facing operations.

    ``status_code`` is the HTTP status the boundary should answer with.
    """

    status_code = 500

    def __init__(self, provider: str, message: str):  # noqa: D401
        super().__init__(f"[{provider}] {message}")
        self.provider = provider
        self.message = message


class ClientInputError(RelayError):
    status_code = 400


class ServerConfigurationError(RelayError):
    status_code = 500


class UpstreamTimeout(RelayError):
    status_code = 504


class UpstreamFailure(RelayError):
    status_code = 500


class RateLimited(RelayError):
    """Upstream answered 429. Recovered internally, never surfaced."""

    status_code = 429


__all__ = [
    "RelayError",
    "ClientInputError",
    "ServerConfigurationError",
    "UpstreamTimeout",
    "UpstreamFailure",
    "RateLimited",
]
