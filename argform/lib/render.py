"""Interpret captured output as styled, link-aware lines.

A pure function over the captured chunks: the record is never modified
and rendering the same chunks twice gives the same lines. ANSI SGR codes
(and OSC 8 hyperlinks) are decoded with rich's AnsiDecoder, one decoder
per stream so colour state set on stdout never bleeds into stderr. Plain
URLs are then marked as links without touching the text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from rich.ansi import AnsiDecoder
from rich.style import Style
from rich.text import Span, Text

from argform.lib.runner import OutputChunk, OutputStream

__all__ = [
    "URL_PATTERN",
    "StyledRun",
    "RenderedLine",
    "find_links",
    "render",
    "render_plain",
    "to_text",
]

URL_PATTERN = re.compile(r"(?:https?://|file://|www\.)[^\s<>\"'`]+")

# Punctuation that usually ends a sentence rather than a URL
_TRAILING = ".,;:!?)]}"


@dataclass(frozen=True)
class StyledRun:
    """A span of text sharing one style."""

    text: str
    style: Style
    link: Optional[str] = None


@dataclass(frozen=True)
class RenderedLine:
    """One output line split into styled runs."""

    stream: OutputStream
    runs: Tuple[StyledRun, ...]

    @property
    def plain(self) -> str:
        return "".join(run.text for run in self.runs)

    @property
    def links(self) -> List[str]:
        return [run.link for run in self.runs if run.link]


def find_links(text: str) -> List[Tuple[int, int, str]]:
    """Locate URL-shaped substrings.

    Returns:
        (start, end, target) tuples; "www." links get an http:// target
    """
    found: List[Tuple[int, int, str]] = []
    for match in URL_PATTERN.finditer(text):
        start, end = match.span()
        while end > start and text[end - 1] in _TRAILING:
            # Keep a closing paren that belongs to the URL, e.g. wiki links
            url = text[start:end]
            if url[-1] == ")" and url.count("(") >= url.count(")"):
                break
            end -= 1
        url = text[start:end]
        target = f"http://{url}" if url.startswith("www.") else url
        found.append((start, end, target))
    return found


def _runs(line: Text) -> Tuple[StyledRun, ...]:
    plain = line.plain
    if not plain:
        return ()

    link_spans = [Span(start, end, Style(link=url)) for start, end, url in find_links(plain)]
    # Detected links go first so an explicit OSC 8 link wins when combined
    spans = link_spans + [s for s in line.spans if isinstance(s.style, Style)]

    cuts = {0, len(plain)}
    for span in spans:
        cuts.add(max(0, min(span.start, len(plain))))
        cuts.add(max(0, min(span.end, len(plain))))
    edges = sorted(cuts)

    runs: List[StyledRun] = []
    for start, end in zip(edges, edges[1:]):
        covering = [s.style for s in spans if s.start <= start and s.end >= end]
        style = Style.combine(covering) if covering else Style.null()  # type: ignore[arg-type]
        text = plain[start:end]
        if runs and runs[-1].style == style:
            previous = runs.pop()
            runs.append(StyledRun(previous.text + text, style, style.link))
        else:
            runs.append(StyledRun(text, style, style.link))
    return tuple(runs)


def render(chunks: Iterable[OutputChunk]) -> List[RenderedLine]:
    """Render chunks into lines, in the order lines were completed.

    Each stream is split into lines on its own; a trailing partial line is
    rendered at the end. Escape sequences split across chunks are fine
    because decoding only happens on whole lines.
    """
    decoders: Dict[OutputStream, AnsiDecoder] = {}
    pending: Dict[OutputStream, str] = {}
    last_seen: Dict[OutputStream, int] = {}
    lines: List[RenderedLine] = []

    def emit(stream: OutputStream, raw: str) -> None:
        if raw.endswith("\r"):
            raw = raw[:-1]
        decoder = decoders.setdefault(stream, AnsiDecoder())
        lines.append(RenderedLine(stream, _runs(decoder.decode_line(raw))))

    for position, chunk in enumerate(chunks):
        buffer = pending.get(chunk.stream, "") + chunk.text
        *complete, rest = buffer.split("\n")
        for raw in complete:
            emit(chunk.stream, raw)
        pending[chunk.stream] = rest
        last_seen[chunk.stream] = position

    for stream in sorted(pending, key=lambda s: last_seen[s]):
        if pending[stream]:
            emit(stream, pending[stream])

    return lines


def render_plain(chunks: Iterable[OutputChunk]) -> str:
    """Captured text with escape sequences stripped."""
    return "\n".join(line.plain for line in render(chunks))


def to_text(line: RenderedLine, err_style: Optional[Style] = None) -> Text:
    """Convert a rendered line to a rich Text for drawing.

    Args:
        line: Line from render()
        err_style: Base style applied under stderr runs (e.g. red)
    """
    text = Text(end="")
    base = err_style if line.stream == OutputStream.ERR and err_style else None
    for run in line.runs:
        style = base + run.style if base is not None else run.style
        text.append(run.text, style)
    return text
