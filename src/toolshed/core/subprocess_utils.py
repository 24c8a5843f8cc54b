"""Subprocess execution with enriched error reporting."""

import subprocess
from collections.abc import Sequence
from pathlib import Path


def run_subprocess_with_context(
    cmd: Sequence[str],
    operation_context: str,
    cwd: Path | None = None,
) -> subprocess.CompletedProcess[bytes]:
    """Execute a subprocess, capturing raw stdout bytes.

    Wraps subprocess.run() to catch CalledProcessError and re-raise as
    RuntimeError with operation context, stderr output, and command details.

    Args:
        cmd: Command and arguments to execute
        operation_context: Human-readable description of operation
        cwd: Working directory for command execution

    Returns:
        CompletedProcess with stdout as bytes

    Raises:
        RuntimeError: If the command fails or its binary is not found
    """
    try:
        return subprocess.run(cmd, cwd=cwd, capture_output=True, check=True)

    except subprocess.CalledProcessError as e:
        cmd_str = " ".join(str(arg) for arg in cmd)
        error_msg = f"Failed to {operation_context}"
        error_msg += f"\nCommand: {cmd_str}"
        error_msg += f"\nExit code: {e.returncode}"

        if e.stderr:
            stderr_stripped = e.stderr.decode("utf-8", errors="replace").strip()
            if stderr_stripped:
                error_msg += f"\nstderr: {stderr_stripped}"

        raise RuntimeError(error_msg) from e

    except FileNotFoundError as e:
        cmd_str = " ".join(str(arg) for arg in cmd)
        error_msg = f"Command not found while trying to {operation_context}: {cmd[0]}"
        error_msg += f"\nFull command: {cmd_str}"
        raise RuntimeError(error_msg) from e
