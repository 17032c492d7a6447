import logging
import os
import re

from util.constants import UNSAFE_FILENAME_CHARS

logger = logging.getLogger(__name__)

_LEADING_DIGITS_RE = re.compile(r"[0-9]+")
_QUALITY_LABEL_RE = re.compile(r"([0-9]+p)([0-9]+)?")


def leading_digits(text: str) -> int:
    """
    Parse the leading contiguous run of ASCII digits in `text` ("1080p60" -> 1080).
    Returns 0 when `text` does not start with one.
    """
    m = _LEADING_DIGITS_RE.match(text or "")
    return int(m.group(0)) if m else 0


def sanitize_filename(name: str) -> str:
    """
    - Replace spaces with underscores.
    - Drop characters that are not safe in filenames on common filesystems.
    """
    safe = (name or "").replace(" ", "_")
    return "".join(ch for ch in safe if ch not in UNSAFE_FILENAME_CHARS)


def format_quality_label(label: str) -> str:
    # "1080p60" -> "1080p 60fps", "720p" stays as is
    m = _QUALITY_LABEL_RE.fullmatch(label or "")
    if not m:
        return label
    base, fps = m.group(1), m.group(2)
    return f"{base} {fps}fps" if fps else base


def remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("fs.remove.error path=%s err=%s", path, e)
