"""Base extractor interface."""

import abc
import logging
from collections.abc import Iterator

from scriptline.config import SyntaxConfig
from scriptline.decoder import strip_block_comments

logger = logging.getLogger(__name__)


class BaseExtractor(abc.ABC):
    """Base class for per-file script extractors. Keeps no cross-file state."""

    def __init__(self, syntax: SyntaxConfig | None = None) -> None:
        self.syntax = syntax or SyntaxConfig()

    @abc.abstractmethod
    def extract(self, content: str, filename: str):
        """Extract structure from one file's content.

        Args:
            content: Full text of the script file.
            filename: Name used to label the result.
        """
        ...

    def iter_lines(self, content: str) -> Iterator[tuple[int, str]]:
        """Yield (line number, trimmed line), skipping blanks and comments."""
        content = strip_block_comments(
            content, self.syntax.block_comment_start, self.syntax.block_comment_end,
        )
        for index, raw in enumerate(content.split("\n")):
            line = raw.strip()
            if not line or line.startswith(self.syntax.comment_prefix):
                continue
            yield index + 1, line
