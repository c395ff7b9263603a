from __future__ import annotations

import math
import re
import unicodedata


WORDS_PER_MINUTE = 200
SLUG_MAX_LENGTH = 255


def slugify(value: str, separator: str = "-", max_length: int = SLUG_MAX_LENGTH) -> str:
    """URL-safe, lowercase, hyphenated form of ``value``.

    "DevOps" -> "devops", "CI Basics" -> "ci-basics", "UI/UX Design" -> "uiux-design".
    The result never exceeds ``max_length``, which matches the slug columns.
    """
    text = unicodedata.normalize("NFKD", str(value or "")).encode("ascii", "ignore").decode("ascii")
    text = text.replace("_", separator).replace("@", f"{separator}at{separator}")
    text = re.sub(r"[^\w\s-]", "", text.lower())
    text = re.sub(r"[-\s]+", separator, text)
    text = text.strip(separator)
    # normalisation and "@" expansion can grow the text past the column width
    return text[:max_length].rstrip(separator)


def estimate_reading_time(content: str) -> int:
    """Estimated reading time in whole minutes, never below one."""
    words = len(re.findall(r"\S+", content or ""))
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


__all__ = ["slugify", "estimate_reading_time", "WORDS_PER_MINUTE", "SLUG_MAX_LENGTH"]
