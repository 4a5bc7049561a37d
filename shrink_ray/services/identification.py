"""
Identification of input files by content, using libmagic.

Only the first bytes of a file are inspected; the file extension is never
trusted. A file that libmagic cannot classify is not an error, it is simply
reported as unidentified so the pipeline can skip it.
"""
import re
from pathlib import Path
from typing import Optional

from loguru import logger

from ..config.common import IDENTIFY_READ_BYTES

_MIME_PATTERN = re.compile(r"^[\w.+-]+/[\w.+-]+$")


class Identifier:
    """
    Maps file contents to MIME types.

    The libmagic handle is opened on first use and reused for every later
    file, so one instance should be shared by a whole batch.
    """

    def __init__(self):
        self._magic = None
        self._magic_errors: tuple = ()

    def _cookie(self):
        if self._magic is None:
            import magic

            logger.trace("Initializing libmagic")
            self._magic = magic.Magic(mime=True)
            self._magic_errors = (magic.MagicException,)
        return self._magic

    def identify(self, path: Path) -> Optional[str]:
        """
        Identifies a file by its first bytes.

        Args:
            path: The file to inspect.

        Returns:
            A `type/subtype` MIME string, or None when the file could not be identified.

        Raises:
            OSError: The file could not be opened or read.
        """
        logger.trace(f"Identifying file `{path}`")
        with path.open("rb") as f:
            head = f.read(IDENTIFY_READ_BYTES)

        mime = self.identify_bytes(head)
        if mime:
            logger.debug(f"Identified file `{path}` as `{mime}`")
        else:
            logger.debug(f"Unable to identify file `{path}`")
        return mime

    def identify_bytes(self, data: bytes) -> Optional[str]:
        logger.trace(f"Identifying {len(data)} bytes using libmagic")
        try:
            answer = self._cookie().from_buffer(data)
        except self._magic_errors as e:
            logger.warning(f"libmagic could not classify buffer: {e}")
            return None
        logger.debug(f"libmagic returned `{answer}`")

        if not answer or not _MIME_PATTERN.match(answer.strip()):
            logger.trace(
                f"Returned value `{answer}` does not look like a MIME type; treating file as unidentified"
            )
            return None
        return answer.strip()
