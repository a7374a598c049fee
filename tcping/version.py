"""Version and build metadata for tcping."""

__version__ = "1.4.0"

# Overridden by release builds.
GIT_HASH = "unknown"
BUILD_TIME = "unknown"

PROGRAM_NAME = "TCPing"


def user_agent() -> str:
    """Return the client tag sent with every HTTP probe."""
    return f"tcping/{__version__}.{GIT_HASH}"
