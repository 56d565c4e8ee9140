import re
from pathlib import Path
from typing import List

from dpanel.core.logger import setup_logger
from dpanel.schemas.system import Language

logger = setup_logger("DPanel.Languages")

LOCALE_SUFFIX = ".ftl"
NAME_PATTERN = re.compile(r'name\s*=\s*"([^"]+)"')


def list_languages(locale_dir: Path) -> List[Language]:
    """List the daemon's locale files.

    Args:
        locale_dir (Path): Directory holding `<code>.ftl` files

    Returns:
        List[Language]: One entry per readable locale file, sorted by code

    Raises:
        OSError: The directory cannot be listed
    """
    languages = []
    for entry in sorted(locale_dir.iterdir()):
        if not entry.is_file() or entry.suffix != LOCALE_SUFFIX:
            continue

        code = entry.stem
        try:
            content = entry.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Skipping unreadable locale file {entry}: {e}")
            continue

        match = NAME_PATTERN.search(content)
        languages.append(Language(code=code, name=match.group(1) if match else code))
    return languages
