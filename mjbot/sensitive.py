"""Sensitive word filter, loaded once at startup and read-only afterwards."""

import logging
from pathlib import Path

logger = logging.getLogger("mjbot.sensitive")


class SensitiveFilter:
    """Case-insensitive substring lookup against a fixed word table."""

    def __init__(self, words: list[str] | None = None) -> None:
        self._words: tuple[str, ...] = tuple(
            sorted({w.strip().lower() for w in (words or []) if w.strip()})
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "SensitiveFilter":
        """Load one word per line; blank lines and '#' comments are skipped.

        An empty path yields a filter that accepts everything.
        """
        if not path:
            logger.info("No sensitive word file configured, filter disabled")
            return cls()
        lines = Path(path).read_text(encoding="utf-8").splitlines()
        words = [line for line in lines if line.strip() and not line.lstrip().startswith("#")]
        instance = cls(words)
        logger.info("Loaded %d sensitive words from %s", len(instance), path)
        return instance

    def __len__(self) -> int:
        return len(self._words)

    def has_sensitive_word(self, text: str) -> bool:
        lowered = text.lower()
        return any(word in lowered for word in self._words)
