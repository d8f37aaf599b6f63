"""Post-unpack hook execution."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from boxkit.box.config import BoxConfig
from boxkit.box.exceptions import HookError

logger = logging.getLogger(__name__)


def run_post_unpack_hook(config: BoxConfig, destination: Path) -> bool:
    """Run the box's ``post-unpack`` command inside ``destination``.

    Returns:
        True if a command ran, False when the box defines none.

    Raises:
        HookError: If the command exits with a non-zero status.
    """
    command = config.post_unpack
    if not command:
        return False

    logger.info("Running post-unpack hook: %s", command)
    try:
        subprocess.run(command, shell=True, cwd=destination, check=True)
    except subprocess.CalledProcessError as exc:
        raise HookError(command, exc.returncode) from exc
    return True


__all__ = ["run_post_unpack_hook"]
