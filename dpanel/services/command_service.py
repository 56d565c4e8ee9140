import subprocess
from typing import List

import anyio

from dpanel.core.logger import setup_logger

logger = setup_logger("DPanel.Commands")


class CommandError(Exception):
    """Raised when a command cannot be started or exits non-zero"""
    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


async def run_command(args: List[str]) -> str:
    """
    Run a process and capture stdout and stderr together.

    Args:
        args: Executable followed by its arguments.

    Returns:
        Combined output, decoded as UTF-8.

    Raises:
        ValueError: `args` is empty.
        CommandError: The executable is missing or exits non-zero;
            `output` holds whatever it printed.
    """
    if not args:
        raise ValueError("Command cannot be empty")

    logger.info(f"Running: {' '.join(args)}")
    try:
        result = await anyio.run_process(args, stderr=subprocess.STDOUT, check=False)
    except OSError as e:
        logger.error(f"Failed to start {args[0]}: {e}")
        raise CommandError(f"Failed to start {args[0]}", str(e)) from e

    output = (result.stdout or b"").decode("utf-8", errors="replace")
    if result.returncode != 0:
        logger.warning(f"{args[0]} exited with status {result.returncode}")
        raise CommandError(f"{args[0]} exited with status {result.returncode}", output)

    return output
