"""
Config Service - read and rewrite the daemon configuration file.

The file is line oriented:

    # comments
    key=value                       basic settings
    # ==== protected_paths_list ====  section header
    /some/path                       section items
    # ==== command_intercept_rules ====
    rm -rf /

Updates rewrite the existing lines in place so hand-written comments and
layout outside the touched keys and sections survive.
"""

import math
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional

from dpanel.core.logger import setup_logger
from dpanel.schemas.config import ConfigDocument, ConfigPatch

logger = setup_logger("DPanel.Config")

ALLOWED_KEYS = (
    "language",
    "disable",
    "expire_hours",
    "timestamp",
    "update",
    "mode",
    "web_ip",
    "web_port",
)

PROTECTED_PATHS_MARKER = "protected_paths_list"
COMMAND_RULES_MARKER = "command_intercept_rules"

# marker -> ConfigDocument / ConfigPatch field, in file scan order
SECTIONS = {
    PROTECTED_PATHS_MARKER: "protected_paths",
    COMMAND_RULES_MARKER: "command_rules",
}

BACKUP_TIME_FORMAT = "%Y%m%d%H%M%S"
EXPIRED = "Expired"

# Bytes that are not UTF-8 (e.g. a Latin-1 comment) must survive a rewrite untouched.
REWRITE_ERRORS = "surrogateescape"


@dataclass
class ParseResult:
    document: ConfigDocument
    warnings: List[str] = field(default_factory=list)


@dataclass
class UpdateResult:
    lines: List[str]
    warnings: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return render_lines(self.lines)


class DisablePeriod(NamedTuple):
    hours: int
    minutes: int

    def __str__(self) -> str:
        return f"{self.hours}h {self.minutes:02d}m"


def split_setting(line: str) -> tuple[str, str] | None:
    """Split a `key=value` line.

    Args:
        line (str): Raw line from the file

    Returns:
        tuple[str, str] | None: Trimmed key and value, None for blank,
        comment or non-assignment lines
    """
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("#") or "=" not in trimmed:
        return None
    key, value = trimmed.split("=", 1)
    return key.strip(), value.strip()


def find_section_marker(line: str) -> str | None:
    for marker in SECTIONS:
        if marker in line:
            return marker
    return None


def parse_lines(lines: Iterable[str]) -> ParseResult:
    """Build the structured view of the configuration lines.

    Section headers win over `key=value`, which wins over section
    membership. Comments and blank lines never reach the document.

    Args:
        lines (Iterable[str]): File content split into lines

    Returns:
        ParseResult: Document plus warnings for lines that were skipped
    """
    basic = {}
    sections = {marker: [] for marker in SECTIONS}
    warnings = []
    current_section = None

    for number, line in enumerate(lines, start=1):
        trimmed = line.strip()
        if not trimmed:
            continue

        marker = find_section_marker(trimmed)
        if marker:
            current_section = marker
            continue

        setting = split_setting(line)
        if setting:
            key, value = setting
            if not key:
                warnings.append(f"line {number}: assignment without a key skipped")
            elif key in ALLOWED_KEYS:
                basic[key] = value
            continue

        if trimmed.startswith("#"):
            continue

        if current_section is None:
            warnings.append(f"line {number}: text outside any section skipped")
            continue

        sections[current_section].append(line)

    document = ConfigDocument(
        basic=basic,
        protected_paths=sections[PROTECTED_PATHS_MARKER],
        command_rules=sections[COMMAND_RULES_MARKER],
    )
    return ParseResult(document=document, warnings=warnings)


def read_config_text(path: Path) -> str:
    """Decode the configuration file for display.

    Undecodable bytes become U+FFFD so the text can always be shown and
    serialised; only update_config works on the exact bytes.

    Raises:
        OSError: The file cannot be opened or read
    """
    return path.read_text(encoding="utf-8", errors="replace")


def parse_config(path: Path) -> ParseResult:
    """Read and parse the configuration file.

    Raises:
        OSError: The file cannot be opened or read
    """
    text = read_config_text(path)
    result = parse_lines(text.splitlines())
    for warning in result.warnings:
        logger.debug(f"{path}: {warning}")
    return result


def format_value(value) -> str | None:
    """Render a patch value the way the daemon expects it on disk."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        if "\n" in value or "\r" in value:
            return None
        return value
    return None


def replace_section(lines: List[str], marker: str, items: List[str]) -> bool:
    """Replace the body of a section in place.

    The body runs from the line after the first header containing `marker`
    up to the next section header or the end of the file. The header and
    everything outside the body are left untouched.

    Returns:
        bool: False if no header for `marker` exists
    """
    start = next((i for i, line in enumerate(lines) if marker in line), None)
    if start is None:
        return False

    end = next(
        (i for i in range(start + 1, len(lines)) if find_section_marker(lines[i])),
        len(lines),
    )
    lines[start + 1:end] = items
    return True


def _clean_items(name: str, items: List) -> tuple[List[str], List[str]]:
    clean, warnings = [], []
    for position, item in enumerate(items):
        if not isinstance(item, str):
            warnings.append(f"{name}[{position}]: expected a string, got {type(item).__name__}; skipped")
        elif "\n" in item or "\r" in item:
            warnings.append(f"{name}[{position}]: line breaks are not allowed; skipped")
        else:
            clean.append(item)
    return clean, warnings


def apply_patch(lines: List[str], patch: ConfigPatch) -> UpdateResult:
    """Apply a partial update to the raw configuration lines.

    Basic settings are rewritten on the line where they already live;
    keys that are not in the file are not added. Sections present in the
    patch are replaced whole, in the order given.

    Args:
        lines (List[str]): Current file content split on "\\n"
        patch (ConfigPatch): Partial update

    Returns:
        UpdateResult: New lines plus warnings for the parts that were skipped
    """
    lines = list(lines)
    warnings = []

    if patch.basic is not None and not isinstance(patch.basic, dict):
        warnings.append(f"basic: expected an object, got {type(patch.basic).__name__}; skipped")
    elif patch.basic:
        values = {}
        for key, value in patch.basic.items():
            rendered = format_value(value)
            if rendered is None:
                warnings.append(f"basic.{key}: unsupported value {value!r}; skipped")
                continue
            values[key] = rendered

        for index, line in enumerate(lines):
            setting = split_setting(line)
            if setting and setting[0] in values:
                key = setting[0]
                lines[index] = f"{key}={values[key]}"

    for marker, name in SECTIONS.items():
        items = getattr(patch, name)
        if items is None:
            continue
        if not isinstance(items, list):
            warnings.append(f"{name}: expected a list, got {type(items).__name__}; skipped")
            continue
        clean, item_warnings = _clean_items(name, items)
        warnings.extend(item_warnings)
        if not replace_section(lines, marker, clean):
            warnings.append(f"section {marker} not found; {name} left unchanged")

    return UpdateResult(lines=lines, warnings=warnings)


def render_lines(lines: List[str]) -> str:
    """Join lines back into file text ending with exactly one newline."""
    return "\n".join(lines).rstrip("\n") + "\n"


def backup_config(path: Path, now: Optional[datetime] = None) -> Path:
    """Copy the configuration file to `<path>.bak.<YYYYMMDDHHMMSS>`.

    Raises:
        OSError: The copy could not be written
    """
    stamp = (now or datetime.now()).strftime(BACKUP_TIME_FORMAT)
    backup_path = path.with_name(f"{path.name}.bak.{stamp}")
    shutil.copy2(path, backup_path)
    logger.info(f"Backed up {path} to {backup_path}")
    return backup_path


def update_config(path: Path, patch: ConfigPatch) -> UpdateResult:
    """Back up the configuration file, then write the patched content.

    No write happens if the backup fails. There is no lock: concurrent
    updates are last-write-wins.

    Raises:
        OSError: Backup, read or write failure
    """
    backup_config(path)
    text = path.read_text(encoding="utf-8", errors=REWRITE_ERRORS)
    result = apply_patch(text.split("\n"), patch)
    path.write_text(result.text, encoding="utf-8", errors=REWRITE_ERRORS)

    for warning in result.warnings:
        logger.warning(f"Config update: {warning}")
    logger.info(f"Updated {path}")
    return result


def remaining_disable_period(basic: dict, now: Optional[float] = None) -> DisablePeriod | str:
    """Time left before a temporary disable expires.

    Args:
        basic (dict): Basic settings holding `expire_hours` and `timestamp`
        now (float, optional): Epoch seconds, defaults to the current time

    Returns:
        DisablePeriod | str: Remaining period, "Expired", or a
        human-readable error for the operator UI
    """
    try:
        expire_hours = float(basic.get("expire_hours", ""))
    except ValueError:
        return "Invalid expire_hours"
    if not math.isfinite(expire_hours):
        return "Invalid expire_hours"

    try:
        timestamp = int(basic.get("timestamp", ""))
    except ValueError:
        return "Invalid timestamp"

    expire_at = timestamp + int(expire_hours * 3600)
    now = time.time() if now is None else now
    if now >= expire_at:
        return EXPIRED

    remaining = expire_at - now
    return DisablePeriod(hours=int(remaining // 3600), minutes=int(remaining // 60) % 60)
