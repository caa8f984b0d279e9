"""
Markdown body scanner.

Reads the body of a post line by line and records the structures the
rules care about: fenced code blocks, links and Hugo shortcodes. Text
inside a fenced or indented code block is code, so links and shortcodes
are never read from it; inline code spans are masked the same way.

Example:
    >>> result = MarkdownScanner().scan("See [intro](/post/intro/).\\n```js\\nx()\\n```\\n")
    >>> [link.target for link in result.links]
    ['/post/intro/']
    >>> result.fences[0].info, result.fences[0].closed
    ('js', True)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_FENCE_OPEN = re.compile(r"^(?P<indent>\s*)(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_BACKTICK_RUN = re.compile(r"`+")
_INDENTED_CODE = re.compile(r"^(?: {4}|\t)")
_LIST_ITEM = re.compile(r"^\s{0,3}(?:[*+-]|\d{1,9}[.)])(?:\s|$)")
_HEADING = re.compile(r"^\s{0,3}#{1,6}(?:\s|$)")
_INLINE_LINK = re.compile(
    r"(?P<image>!?)\[(?P<text>(?:[^\[\]]|\[[^\[\]]*\])*)\]"
    r"\(\s*(?:<(?P<angle>[^>]*)>|(?P<dest>[^\s()]*(?:\([^\s()]*\)[^\s()]*)*))"
    r"(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)"
)
_REFERENCE_DEF = re.compile(r"^\s{0,3}\[(?!\^)(?P<label>[^\]]+)\]:\s*<?(?P<dest>[^\s>]+)>?")
_AUTOLINK = re.compile(r"<(?P<dest>(?:https?|ftp)://[^\s<>]+|mailto:[^\s<>]+)>")
_SHORTCODE = re.compile(
    r"\{\{[<%]\s*(?P<close>/)?\s*(?P<name>[\w.-]+)(?P<args>.*?)(?P<self>/)?\s*[>%]\}\}"
)


@dataclass
class FencedBlock:
    """A fenced code block.

    Attributes:
        fence_char: "`" or "~"
        fence_length: Number of fence characters in the opener
        info: Language hint (first word of the info string, may be empty)
        start_line: 1-based line of the opening fence
        end_line: 1-based line of the closing fence, None when unclosed
    """

    fence_char: str
    fence_length: int
    info: str
    start_line: int
    end_line: int | None = None

    @property
    def closed(self) -> bool:
        return self.end_line is not None

    @property
    def language(self) -> str:
        return self.info


@dataclass
class Link:
    """A link or image reference found in prose.

    Attributes:
        target: Destination as written
        text: Link text or image alt text
        line: 1-based line in the post file
        kind: "inline", "image", "reference", or "autolink"
    """

    target: str
    text: str
    line: int
    kind: str = "inline"


@dataclass
class Shortcode:
    """A Hugo shortcode tag (``{{< name >}}`` / ``{{% name %}}``)."""

    name: str
    line: int
    closing: bool = False
    self_closing: bool = False


@dataclass
class ScanResult:
    """Everything found in one body."""

    fences: list[FencedBlock] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    shortcodes: list[Shortcode] = field(default_factory=list)

    @property
    def unclosed_fences(self) -> list[FencedBlock]:
        return [fence for fence in self.fences if not fence.closed]


class MarkdownScanner:
    """Scan a Markdown body for fences, links and shortcodes.

    Fence rules follow CommonMark, except that any indentation is accepted
    so fences nested in list items are found:

    - an opener is three or more backticks or tildes; a backtick opener's
      info string may not contain a backtick
    - a closer uses the same character, is at least as long as the opener,
      and has nothing but whitespace after it
    - a block still open at the end of the body stays unclosed

    Examples:
        >>> result = MarkdownScanner().scan("````\\n```\\n````\\n")
        >>> len(result.fences), result.fences[0].end_line
        (1, 3)
    """

    def scan(self, body: str, line_offset: int = 1) -> ScanResult:
        """Scan ``body``; ``line_offset`` is the file line of its first line.

        Indented code blocks (four spaces or a tab after a blank line,
        outside a list) are skipped like fenced ones. Prose is buffered per
        paragraph so code spans that cross a line break are masked.
        """
        result = ScanResult()
        open_fence: FencedBlock | None = None
        paragraph: list[tuple[str, int]] = []
        after_blank = True
        in_indented_code = False
        in_list = False

        for index, line in enumerate(body.splitlines()):
            line_number = index + line_offset

            if open_fence is not None:
                if self._closes(line, open_fence):
                    open_fence.end_line = line_number
                    open_fence = None
                continue

            if not line.strip():
                self._flush(paragraph, result)
                after_blank = True
                continue

            fence = self._opens(line, line_number)
            if fence is not None:
                self._flush(paragraph, result)
                result.fences.append(fence)
                open_fence = fence
                after_blank = in_indented_code = False
                continue

            indented = bool(_INDENTED_CODE.match(line))
            if indented and not in_list and (after_blank or in_indented_code):
                self._flush(paragraph, result)
                in_indented_code = True
                after_blank = False
                continue
            in_indented_code = False

            if _LIST_ITEM.match(line):
                in_list = True
                self._flush(paragraph, result)
            elif not indented and after_blank:
                in_list = False
            heading = bool(_HEADING.match(line))
            if heading:
                self._flush(paragraph, result)

            paragraph.append((line, line_number))
            if heading:
                self._flush(paragraph, result)
            after_blank = False

        self._flush(paragraph, result)
        return result

    def _flush(self, paragraph: list[tuple[str, int]], result: ScanResult) -> None:
        if not paragraph:
            return
        masked = _mask_code_spans("\n".join(line for line, _ in paragraph))
        for text, (_, line_number) in zip(masked.split("\n"), paragraph):
            self._scan_prose(text, line_number, result)
        paragraph.clear()

    def _opens(self, line: str, line_number: int) -> FencedBlock | None:
        match = _FENCE_OPEN.match(line)
        if match is None:
            return None
        fence = match.group("fence")
        info = match.group("info").strip()
        if fence[0] == "`" and "`" in info:
            return None
        return FencedBlock(
            fence_char=fence[0],
            fence_length=len(fence),
            info=info.split()[0].strip("{}.") if info else "",
            start_line=line_number,
        )

    @staticmethod
    def _closes(line: str, fence: FencedBlock) -> bool:
        stripped = line.strip()
        if len(stripped) < fence.fence_length:
            return False
        return stripped == fence.fence_char * len(stripped)

    def _scan_prose(self, text: str, line_number: int, result: ScanResult) -> None:
        """Record links and shortcodes on one line whose code spans are already masked."""
        definition = _REFERENCE_DEF.match(text)
        if definition:
            result.links.append(Link(
                target=definition.group("dest"),
                text=definition.group("label"),
                line=line_number,
                kind="reference",
            ))
        else:
            self._scan_inline_links(text, line_number, result)

        for match in _AUTOLINK.finditer(text):
            result.links.append(Link(
                target=match.group("dest"),
                text=match.group("dest"),
                line=line_number,
                kind="autolink",
            ))

        for match in _SHORTCODE.finditer(text):
            result.shortcodes.append(Shortcode(
                name=match.group("name"),
                line=line_number,
                closing=bool(match.group("close")),
                self_closing=bool(match.group("self")),
            ))

    def _scan_inline_links(self, text: str, line_number: int, result: ScanResult) -> None:
        for match in _INLINE_LINK.finditer(text):
            target = match.group("angle")
            if target is None:
                target = match.group("dest") or ""
            result.links.append(Link(
                target=target,
                text=match.group("text"),
                line=line_number,
                kind="image" if match.group("image") else "inline",
            ))
            # Linked images: [![alt](img.png)](/post/x/)
            if "](" in match.group("text"):
                self._scan_inline_links(match.group("text"), line_number, result)



def _mask_code_spans(text: str) -> str:
    """Blank out inline code spans, keeping line breaks so line numbers hold.

    A run of backticks opens a span closed by the next run of the same
    length; a run with no closer is literal text.
    """
    runs = list(_BACKTICK_RUN.finditer(text))
    chars = list(text)
    i = 0
    while i < len(runs):
        opener = runs[i]
        closer = next(
            (j for j in range(i + 1, len(runs)) if len(runs[j].group(0)) == len(opener.group(0))),
            None,
        )
        if closer is None:
            i += 1
            continue
        for k in range(opener.start(), runs[closer].end()):
            if chars[k] != "\n":
                chars[k] = " "
        i = closer + 1
    return "".join(chars)

__all__ = [
    "FencedBlock",
    "Link",
    "Shortcode",
    "ScanResult",
    "MarkdownScanner",
]
