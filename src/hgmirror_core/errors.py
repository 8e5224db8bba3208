"""Exception taxonomy for hgmirror-core."""

from typing import Optional, Sequence


class HgMirrorError(Exception):
    """Base exception for all hgmirror errors."""

    pass


# Configuration errors


class ValidationError(HgMirrorError):
    """User-supplied configuration is invalid. Shown verbatim to the user."""

    pass


class ConfigError(HgMirrorError):
    """Failed to locate, read or parse a configuration file."""

    pass


def check_not_empty(value: Optional[str], field: str) -> str:
    """Return ``value`` or raise ``ValidationError`` when it is empty/blank."""
    if value is None or not value.strip():
        raise ValidationError(f"Invalid empty field '{field}'")
    return value


# Repository errors


class CannotResolveRevisionError(HgMirrorError):
    """Reference does not identify exactly one commit."""

    def __init__(self, reference: str, details: str = "") -> None:
        self.reference = reference
        self.details = details
        message = f"Cannot resolve reference '{reference}'"
        if details:
            message += f": {details}"
        super().__init__(message)


class MalformedLogError(HgMirrorError):
    """hg log output did not match the expected record format."""

    def __init__(self, details: str, record: str) -> None:
        self.details = details
        self.record = record
        super().__init__(f"Malformed hg log record ({details}): {record!r}")


class ExternalToolError(HgMirrorError):
    """The external VCS process failed."""

    def __init__(
        self,
        command: Sequence[str],
        exit_code: Optional[int],
        stderr: str,
        message: Optional[str] = None,
    ) -> None:
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        if message is None:
            message = f"Command {' '.join(self.command)!r} failed with exit code {exit_code}"
            if stderr.strip():
                message += f":\n{stderr.strip()}"
        super().__init__(message)


class CommandTimeoutError(ExternalToolError):
    """The external VCS process exceeded its time budget and was killed."""

    def __init__(self, command: Sequence[str], timeout: float, elapsed: float, stderr: str = "") -> None:
        self.timeout = timeout
        self.elapsed = elapsed
        super().__init__(
            command,
            None,
            stderr,
            message=(
                f"Command {' '.join(command)!r} timed out after {elapsed:.1f}s "
                f"(limit {timeout:.1f}s)"
            ),
        )


# Checkout errors


class CheckoutError(HgMirrorError):
    """Reconciling a working directory failed; its state is undefined."""

    pass
