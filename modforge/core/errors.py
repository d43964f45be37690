"""Error codes for CLI exit status.

Every command maps its failure to one of these codes so scripts driving a
release can tell a bad argument from a broken manifest or an unreachable
registry.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad input, malformed version or template)
    - 2: Environment error (missing pwsh, no registry provider)
    - 3: Manifest error (no root mapping, unparsable document)
    - 4: Network error (registry query failed)
    - 5: I/O error (file not found, permission denied)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    MANIFEST_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
