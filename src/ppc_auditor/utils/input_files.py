"""
Loading user-provided text files.

Keyword exports, ad copy and landing page text arrive as local ``.csv`` or
``.txt`` files. The suffix is only a hint for file dialogs; any file is read
as UTF-8 with undecodable bytes replaced.
"""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

INPUT_FILE_SUFFIXES = (".csv", ".txt")
INPUT_FILE_FILTER = "Keyword data (*.csv *.txt);;All files (*)"


def read_text_input(path: Union[str, Path]) -> str:
    """
    Read a text input file.

    Args:
        path: File to read

    Returns:
        The file content with ``\\r\\n`` line endings normalised

    Raises:
        FileNotFoundError: If the file does not exist
        OSError: If the file cannot be read
    """
    file_path = Path(path)
    content = file_path.read_text(encoding="utf-8", errors="replace")
    if content.startswith("\ufeff"):
        content = content[1:]
    logger.debug(f"Read {len(content)} characters from {file_path}")
    return content.replace("\r\n", "\n")
