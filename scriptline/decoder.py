"""Decode one line of script markup into commands and literal text.

Two command forms are recognized:

    [name key="value" key='value' key=value]   bracket tag, anywhere on a line
    @name key=value ...                        at-command, whole line

The decoder is lenient. Anything that does not scan as a tag (an unterminated
``[``, an empty ``[]``) is returned as literal text; nothing here raises.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from scriptline.models import Command

TAG_OPEN = "["
TAG_CLOSE = "]"
AT_PREFIX = "@"


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def parse_parameters(text: str) -> dict[str, str]:
    """Parse ``key=value`` pairs out of tag content.

    Keys are runs of word characters, whitespace is allowed around ``=``.
    A value is double-quoted, single-quoted, or a run of non-whitespace.
    An unterminated quote is read with the unquoted rule, quote included.
    Later duplicate keys overwrite earlier ones.
    """
    params: dict[str, str] = {}
    n = len(text)
    i = 0
    while i < n:
        if not _is_word_char(text[i]):
            i += 1
            continue

        key_start = i
        while i < n and _is_word_char(text[i]):
            i += 1
        key = text[key_start:i]

        j = i
        while j < n and text[j].isspace():
            j += 1
        if j >= n or text[j] != "=":
            continue
        j += 1
        while j < n and text[j].isspace():
            j += 1
        if j >= n:
            # "key=" with nothing after it is not a pair
            continue

        quote = text[j]
        if quote in ("'", '"'):
            close = text.find(quote, j + 1)
            if close != -1:
                params[key] = text[j + 1:close]
                i = close + 1
                continue

        value_start = j
        while j < n and not text[j].isspace():
            j += 1
        params[key] = text[value_start:j]
        i = j
    return params


def _command_from_content(content: str, line_number: int) -> Command:
    parts = content.split()
    name = parts[0].lower() if parts else ""
    return Command(
        name=name,
        parameters=parse_parameters(content),
        source_line=line_number,
    )


def _scan_brackets(line: str) -> Iterator[tuple[int, int]]:
    """Yield (start, end) spans of well-formed bracket tags, left to right."""
    pos = 0
    n = len(line)
    while pos < n:
        start = line.find(TAG_OPEN, pos)
        if start == -1:
            return
        end = line.find(TAG_CLOSE, start + 1)
        if end == -1:
            return
        if end == start + 1:
            # "[]" has no content and stays literal
            pos = start + 1
            continue
        yield start, end + 1
        pos = end + 1


@dataclass(frozen=True)
class TextSegment:
    """Literal text found between tags."""
    text: str


Token = Command | TextSegment


class DecodedLine:
    """Commands and literal text of one line.

    Iterating yields the line's commands. Every call to ``iter()`` rescans
    the line, so the sequence can be consumed any number of times.
    """

    def __init__(self, line: str, line_number: int = 0, at_prefix: str = AT_PREFIX) -> None:
        self.line = line
        self.line_number = line_number
        self.at_prefix = at_prefix

    @property
    def is_at_command(self) -> bool:
        return bool(self.at_prefix) and self.line.lstrip().startswith(self.at_prefix)

    def tokens(self) -> Iterator[Token]:
        """Commands and literal text, interleaved in document order."""
        if self.is_at_command:
            body = self.line.lstrip()[len(self.at_prefix):]
            yield _command_from_content(body, self.line_number)
            return

        last = 0
        for start, end in _scan_brackets(self.line):
            if start > last:
                yield TextSegment(self.line[last:start])
            yield _command_from_content(self.line[start + 1:end - 1], self.line_number)
            last = end
        if last < len(self.line):
            yield TextSegment(self.line[last:])

    def __iter__(self) -> Iterator[Command]:
        for token in self.tokens():
            if isinstance(token, Command):
                yield token

    @property
    def commands(self) -> list[Command]:
        return list(self)

    @property
    def texts(self) -> list[str]:
        return [t.text for t in self.tokens() if isinstance(t, TextSegment)]

    def __repr__(self) -> str:
        return f"DecodedLine({self.line_number}: {self.line!r})"


def decode_line(line: str, line_number: int = 0, at_prefix: str = AT_PREFIX) -> DecodedLine:
    """Decode one line of markup. Never raises."""
    return DecodedLine(line, line_number, at_prefix=at_prefix)


def strip_block_comments(content: str, start: str = "/*", end: str = "*/") -> str:
    """Remove block comments, keeping the newlines inside them.

    Line numbers of everything after a comment are unchanged. An
    unterminated block comment is left in place.
    """
    out: list[str] = []
    pos = 0
    while True:
        open_at = content.find(start, pos)
        if open_at == -1:
            out.append(content[pos:])
            break
        close_at = content.find(end, open_at + len(start))
        if close_at == -1:
            out.append(content[pos:])
            break
        out.append(content[pos:open_at])
        out.append("\n" * content.count("\n", open_at, close_at))
        pos = close_at + len(end)
    return "".join(out)
