"""
Purpose:
- Decide how a model answer should be displayed, by lightweight content sniffing.
- Rules are an ordered table; the first predicate that matches wins.

Precedence:
1. STRUCTURED_DATA - trimmed text is a {...} object that parses as JSON
2. FORMATTED_TEXT  - contains a backtick (markdown with code)
3. MARKUP          - contains both '<' and '>'
4. PLAIN_TEXT      - everything else, whitespace preserved

Notes:
- MARKUP is model output shown as HTML. How much of it is trusted is the UI's call
  (see settings.render_unsafe_markup); nothing here sanitizes it.
"""

from __future__ import annotations
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

class RenderMode(str, Enum):
    STRUCTURED_DATA = "structured-data"
    FORMATTED_TEXT = "formatted-text"
    MARKUP = "markup"
    PLAIN_TEXT = "plain-text"

@dataclass
class Segment:
    text: str
    code: bool = False
    language: str = ""      # declared fence language, lowercased; "" when none

@dataclass
class RenderedResult:
    mode: RenderMode
    body: str
    # prose and fenced code blocks in order of appearance (FORMATTED_TEXT only)
    segments: List[Segment] = field(default_factory=list)

    @property
    def code_languages(self) -> List[str]:
        return [s.language for s in self.segments if s.code and s.language]

_FENCE_RE = re.compile(r"^[ \t]*(```|~~~)[ \t]*([\w+#.-]*)")

def _is_json_object(text: str) -> bool:
    stripped = text.strip()
    if not (stripped.startswith("{") and stripped.endswith("}")):
        return False
    try:
        json.loads(stripped)
    except ValueError:
        return False
    return True

def _has_backtick(text: str) -> bool:
    return "`" in text

def _has_markup(text: str) -> bool:
    return "<" in text and ">" in text

# Ordered: first match wins. PLAIN_TEXT is the fallback, not a rule.
RULES: List[Tuple[RenderMode, Callable[[str], bool]]] = [
    (RenderMode.STRUCTURED_DATA, _is_json_object),
    (RenderMode.FORMATTED_TEXT, _has_backtick),
    (RenderMode.MARKUP, _has_markup),
]

def classify(text: str) -> RenderMode:
    for mode, matches in RULES:
        if matches(text):
            return mode
    return RenderMode.PLAIN_TEXT

def split_fenced(text: str) -> List[Segment]:
    """
    Split markdown into prose and fenced code segments.
    A fence closes on a line holding only the same marker; an unclosed fence runs to the end.
    Blank prose between blocks is dropped.
    """
    segments: List[Segment] = []
    buf: List[str] = []
    fence: Optional[str] = None
    language = ""

    def flush(code: bool) -> None:
        body = "\n".join(buf)
        if code or body.strip():
            segments.append(Segment(body, code=code, language=language))

    for line in text.splitlines():
        if fence is None:
            m = _FENCE_RE.match(line)
            if m:
                flush(False)
                buf, fence, language = [], m.group(1), m.group(2).lower()
                continue
        elif line.strip() == fence:
            flush(True)
            buf, fence, language = [], None, ""
            continue
        buf.append(line)

    flush(fence is not None)
    return segments

def code_block_languages(text: str) -> List[str]:
    return [s.language for s in split_fenced(text) if s.code and s.language]

def render_result(text: str) -> RenderedResult:
    mode = classify(text)
    if mode is RenderMode.STRUCTURED_DATA:
        parsed = json.loads(text.strip())
        return RenderedResult(mode, json.dumps(parsed, indent=2, ensure_ascii=False))
    if mode is RenderMode.FORMATTED_TEXT:
        return RenderedResult(mode, text, segments=split_fenced(text))
    return RenderedResult(mode, text)
