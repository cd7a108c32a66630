"""
=============================================================================
SHARING CONFIGURATION
=============================================================================

Centralized configuration for the file sharing server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m httpshare -p 3000 -k report.pdf                 │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTPSHARE_PORT=3000 python -m httpshare report.pdf        │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The file path and port are the only values shared between serving
sessions, and nothing mutates them once the server has started.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError


DEFAULT_PORT = 8080

# Ceiling for one incoming request. A request that fills it completely is
# rejected as "too long" rather than silently truncated.
DEFAULT_MAX_REQUEST_SIZE = 1024 * 1024

DEFAULT_MAX_URI_LENGTH = 8192

DEFAULT_CHUNK_SIZE = 4096

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ShareConfig:
    """
    Configuration for the file sharing server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    WHAT TO SERVE
    - file_path, keep_serving

    NETWORK SETTINGS
    - host, port, backlog, timeout

    HTTP / TRANSFER SETTINGS
    - chunk_size, max_request_size, max_uri_length, server_name

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # WHAT TO SERVE
    # ─────────────────────────────────────────────────────────────────────

    file_path: Optional[str] = None
    """Path of the single file to publish. Required."""

    keep_serving: bool = False
    """
    Serve the file again after each session instead of exiting.
    Ctrl+C is the only way out in this mode.
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Bind address. All interfaces, so other machines can download."""

    port: int = DEFAULT_PORT
    """
    The port number to listen on (0-65535).
    0 asks the OS for a free port; the printed URL shows the real one.
    """

    backlog: int = 1
    """One client at a time, so there is nothing to queue."""

    timeout: Optional[float] = None
    """
    Socket timeout in seconds for client reads and writes.
    None = fully blocking, which is what an interactive share wants.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP / TRANSFER SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    chunk_size: int = DEFAULT_CHUNK_SIZE
    """Bytes read from the file and written to the socket per step."""

    max_request_size: int = DEFAULT_MAX_REQUEST_SIZE
    max_uri_length: int = DEFAULT_MAX_URI_LENGTH

    server_name: str = "HTTP File Sharing"
    """Value of the Server header."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    WARNING keeps the console to the URL, progress and errors.
    """

    @classmethod
    def from_env(cls) -> "ShareConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPSHARE_FILE          File to serve (default: None)
        HTTPSHARE_PORT          Server port (default: 8080)
        HTTPSHARE_KEEP_SERVING  1/true/yes/on to keep serving
        HTTPSHARE_CHUNK_SIZE    Transfer chunk size (default: 4096)
        HTTPSHARE_TIMEOUT       Client socket timeout in seconds (default: none)
        HTTPSHARE_LOG_LEVEL     Logging level (default: WARNING)

        =====================================================================

        Raises:
            ConfigError: If a numeric variable does not parse.
        """
        try:
            port = int(os.getenv("HTTPSHARE_PORT", str(DEFAULT_PORT)))
            chunk_size = int(os.getenv("HTTPSHARE_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE)))
            timeout_env = os.getenv("HTTPSHARE_TIMEOUT")
            timeout = float(timeout_env) if timeout_env else None
        except ValueError as e:
            raise ConfigError(f"Invalid environment setting: {e}") from e

        return cls(
            file_path=os.getenv("HTTPSHARE_FILE"),
            port=port,
            keep_serving=_env_flag("HTTPSHARE_KEEP_SERVING"),
            chunk_size=chunk_size,
            timeout=timeout,
            log_level=os.getenv("HTTPSHARE_LOG_LEVEL", "WARNING"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Runs before any socket is created, so a typo in the port or the
        file name never costs the operator a bind or a printed URL.

        Raises:
            ConfigError: On the first invalid value found.
        """
        if not self.file_path:
            raise ConfigError("No file to send was provided.")

        if os.path.isdir(self.file_path):
            raise ConfigError(f"'{self.file_path}' is a directory, not a file.")

        # Open it once now: "exists" is not enough, it must be readable
        try:
            with open(self.file_path, "rb"):
                pass
        except OSError as e:
            raise ConfigError(
                f"Failed to open the file '{self.file_path}' ({e.strerror or e})."
            ) from e

        if not 0 <= self.port <= 65535:
            raise ConfigError("Port value must be within 0 and 65535.")

        if self.backlog < 1:
            raise ConfigError("backlog must be >= 1")

        if self.chunk_size < 1:
            raise ConfigError("chunk_size must be >= 1")

        if self.max_request_size < 1:
            raise ConfigError("max_request_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level}")
