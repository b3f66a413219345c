"""Cancellable external process execution shared by the host adapters."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from sdkforge.core.cancellation import NEVER_CANCELLED, CancellationToken

logger = logging.getLogger(__name__)

_POLL_INTERVAL_SECONDS = 0.2


class ProcessError(RuntimeError):
    """Raised when an external tool cannot be started or exits non-zero."""


class ProcessResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_process(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    cancel: CancellationToken = NEVER_CANCELLED,
    check: bool = False,
) -> ProcessResult:
    """Run *args* to completion, polling *cancel* while it runs.

    A cancellation request terminates the child and raises
    ``OperationCancelledError``.  With ``check=True`` a non-zero exit raises
    ``ProcessError``.
    """
    cancel.raise_if_cancelled()
    argv = [str(a) for a in args]
    logger.debug("Running %s", " ".join(argv))

    try:
        proc = subprocess.Popen(
            argv,
            cwd=str(cwd) if cwd else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        raise ProcessError(f"Could not start {argv[0]}: {exc}") from exc

    while True:
        try:
            stdout, stderr = proc.communicate(timeout=_POLL_INTERVAL_SECONDS)
            break
        except subprocess.TimeoutExpired:
            if cancel.cancelled:
                proc.kill()
                proc.communicate()
                logger.debug("Killed %s after cancellation", argv[0])
                cancel.raise_if_cancelled()

    result = ProcessResult(
        args=argv,
        returncode=proc.returncode,
        stdout=stdout or "",
        stderr=stderr or "",
    )
    if check and not result.ok:
        detail = result.stderr.strip() or result.stdout.strip()
        raise ProcessError(
            f"{argv[0]} exited with code {result.returncode}" + (f": {detail}" if detail else "")
        )
    return result
