"""
Standard exit codes and error taxonomy for ghauth commands.

Following Unix/POSIX conventions for command-line tools. Fatal errors
derive from CommandError and carry their exit code; per-record errors
derive from RecordError and never abort a sync run.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # GitHub API call failed
CONFIG_ERROR = 66        # Missing or placeholder configuration
PERMISSION_ERROR = 67    # Insufficient permissions
NETWORK_ERROR = 68       # Network connection failed
AUTH_ERROR = 69          # GitHub rejected the App assertion
DATA_ERROR = 70          # Data format or validation error
PARTIAL_SUCCESS = 71     # Some records succeeded, some failed or conflicted
DECRYPTION_ERROR = 72    # Encrypted private key could not be decrypted
NO_INSTALLATION = 73     # The App is not installed anywhere
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)
TERMINATED = 143         # Terminated by SIGTERM

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigurationMissing(CommandError):
    """Raised before any network call when credentials are unset or placeholders."""
    def __init__(self, message: str, problems: Optional[list] = None):
        super().__init__(message, CONFIG_ERROR)
        self.problems = problems or []


class DecryptionFailed(CommandError):
    """Raised for a wrong password hash or a corrupted key artifact."""
    def __init__(self, message: str = "Failed to decrypt GitHub App private key"):
        super().__init__(message, DECRYPTION_ERROR)


class IssuanceError(CommandError):
    """Base class for failures while talking to the GitHub App API."""
    def __init__(self, message: str, exit_code: int = API_ERROR):
        super().__init__(message, exit_code)


class AuthRejected(IssuanceError):
    """GitHub refused the signed assertion (bad App id, key or clock)."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, AUTH_ERROR)
        self.status_code = status_code


class NoInstallationFound(IssuanceError):
    """The assertion is valid but the App has no installations."""
    def __init__(self, message: str = "GitHub App is not installed on any account"):
        super().__init__(message, NO_INSTALLATION)


class InstallationLookupFailed(IssuanceError):
    """Listing installations failed for a reason other than authorization."""


class TokenRequestFailed(IssuanceError):
    """The access token exchange failed or returned no usable token."""


class PartialSuccessError(CommandError):
    """Raised when some records succeed and some fail or conflict."""
    def __init__(self, message: str, succeeded: int = 0, failed: int = 0):
        super().__init__(message, PARTIAL_SUCCESS)
        self.succeeded = succeeded
        self.failed = failed


class RecordError(Exception):
    """Non-fatal error scoped to a single declared repository."""
    kind = "record_error"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.details = details


class InvalidRecordFormat(RecordError):
    """A repository line whose owner/name does not match the identifier pattern."""
    kind = "invalid_record_format"


class DestinationConflict(RecordError):
    """The destination holds a foreign repository or non-git content."""
    kind = "destination_conflict"


class OperationFailed(RecordError):
    """A clone, stash, pull or remote rewrite failed."""
    kind = "operation_failed"
