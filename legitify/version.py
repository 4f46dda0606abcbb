"""Program name and build identification."""

NAME = "legitify"
VERSION = "na"
COMMIT = "na"


def readable_version() -> str:
    """Return the full version line, e.g. ``legitify version 1.0 commit abc``."""
    return f"{NAME} version {VERSION} commit {COMMIT}"


def readable_version_lean() -> str:
    """Return the short version line without the program name."""
    return f"Version: {VERSION} Commit {COMMIT}"