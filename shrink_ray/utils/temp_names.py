"""
Allocation of collision-free temporary file names next to an input file.
"""
import random
from pathlib import Path
from typing import Optional

from loguru import logger

from ..config.common import TEMP_NAME_ALPHABET, TEMP_NAME_LENGTH


def generate_random_string(length: int = TEMP_NAME_LENGTH) -> str:
    return "".join(random.choices(TEMP_NAME_ALPHABET, k=length))


def allocate(base_path: Path, suffix: Optional[str] = None, claim: bool = False) -> Path:
    """
    Picks a file name that does not exist yet, in the directory of `base_path`.

    The name is `<stem>-<random><suffix>`. A fresh random part is drawn until
    the candidate does not exist.

    Args:
        base_path: The file the temporary name is derived from.
        suffix: An extension to append, including its dot (e.g. ".jpg").
        claim: If True, the file is created with exclusive-create semantics so
               no other process can take the name between allocation and use.
               Otherwise only existence is checked and the caller must create
               the file promptly.

    Returns:
        The allocated path.
    """
    prefix = base_path.parent / f"{base_path.stem}-"
    while True:
        candidate = Path(f"{prefix}{generate_random_string()}{suffix or ''}")
        if candidate.exists():
            logger.trace(f"Temp name {candidate} taken, retrying.")
            continue
        if claim:
            try:
                with candidate.open("x"):
                    pass
            except FileExistsError:
                logger.trace(f"Temp name {candidate} claimed concurrently, retrying.")
                continue
        return candidate
