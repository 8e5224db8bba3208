"""Run external VCS commands with timeouts and bounded concurrency."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from ..errors import CommandTimeoutError, ExternalToolError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_COMMANDS = 8

# Environment forced on every hg invocation: plain (non-localized, non-aliased)
# output, UTF-8 encoded.
HG_ENVIRONMENT = {
    "HGPLAIN": "1",
    "HGENCODING": "utf-8",
}

_command_slots = threading.BoundedSemaphore(DEFAULT_MAX_CONCURRENT_COMMANDS)


def configure_max_concurrent_commands(limit: int) -> None:
    """Cap the number of external processes running at once in this process."""
    global _command_slots
    if limit < 1:
        raise ValidationError(f"max_concurrent_commands must be >= 1, got {limit}")
    _command_slots = threading.BoundedSemaphore(limit)
    logger.debug(f"External command concurrency limited to {limit}")


@dataclass(frozen=True)
class CommandOutput:
    """Captured result of a successful command."""

    stdout: str
    stderr: str
    exit_code: int
    elapsed: float


def run_command(
    args: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CommandOutput:
    """Run ``args`` and return its output.

    Raises:
        ExternalToolError: the process could not start or exited non-zero.
        CommandTimeoutError: the process ran longer than ``timeout`` seconds.
    """
    command = [str(a) for a in args]
    full_env = dict(os.environ)
    full_env.update(HG_ENVIRONMENT)
    if env:
        full_env.update(env)

    with _command_slots:
        start = time.monotonic()
        logger.debug(f"Running {command} in {cwd or os.getcwd()}")
        try:
            proc = subprocess.Popen(
                command,
                cwd=str(cwd) if cwd is not None else None,
                env=full_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalToolError(command, None, str(e), message=f"Cannot execute {command[0]!r}: {e}") from e

        with proc:
            try:
                raw_out, raw_err = proc.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                proc.kill()
                _, raw_err = proc.communicate()
                elapsed = time.monotonic() - start
                logger.debug(f"Killed {command} after {elapsed:.2f}s")
                raise CommandTimeoutError(command, timeout, elapsed, _decode(raw_err))
            except BaseException:
                proc.kill()
                proc.wait()
                raise

        elapsed = time.monotonic() - start

    stdout = _decode(raw_out)
    stderr = _decode(raw_err)
    if proc.returncode != 0:
        logger.debug(f"{command} exited with {proc.returncode} after {elapsed:.2f}s")
        raise ExternalToolError(command, proc.returncode, stderr)

    logger.debug(f"{command} finished in {elapsed:.2f}s")
    return CommandOutput(stdout=stdout, stderr=stderr, exit_code=proc.returncode, elapsed=elapsed)


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")
