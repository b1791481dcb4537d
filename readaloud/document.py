"""The document side of narration: the cursor contract and a plain-text adapter."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from readaloud.constants import DEFAULT_LANG, UNIT_SENTENCE_LIMIT
from readaloud.ssml import build_unit

logger = logging.getLogger(__name__)

CJK_LANGS = ("zh", "ja", "ko")

# Latin sentences end in punctuation plus whitespace, CJK ones right after the mark
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+|(?<=[。！？])")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class DocumentLanguage:
    locale: str
    is_cjk: bool = False


class Document(Protocol):
    """What the controller needs from a document.

    start/next/prev/resume return one SSML unit, or None when there is
    nothing at that position (the cursor does not move). next() followed
    by prev() must land on the same unit. next_section() is optional.
    """

    language: DocumentLanguage

    def init_tts(self, granularity: str, node_filter: Callable[[str, str], bool], highlight: Callable[[Any], None]) -> None: ...

    def start(self) -> str | None: ...

    def next(self) -> str | None: ...

    def prev(self) -> str | None: ...

    def resume(self) -> str | None: ...

    def resolve_mark_to_range(self, name: str) -> Any: ...


@dataclass
class _Unit:
    section: int
    sentences: list[str]
    offsets: list[int] = field(default_factory=list)   # char offset of each sentence in the text


def split_sentences(paragraph: str) -> list[str]:
    """Split a paragraph into sentences, collapsing inner whitespace."""
    paragraph = re.sub(r"\s+", " ", paragraph).strip()
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(paragraph) if s.strip()]


class TextDocument:
    """A plain-text document read paragraph by paragraph.

    Each paragraph is a section; sections are cut into units of at most
    UNIT_SENTENCE_LIMIT sentences, one mark per sentence. Mark ranges are
    (start, end) character offsets into the original text.
    """

    def __init__(self, text: str, lang: str = DEFAULT_LANG, sentence_limit: int = UNIT_SENTENCE_LIMIT):
        self.text = text
        self.language = DocumentLanguage(lang, lang.lower()[:2] in CJK_LANGS)
        self.units = self._split(text, sentence_limit)
        self.index = -1
        self.mark = 0          # last sentence reached in the current unit
        self.granularity = None
        self.node_filter = None
        self.highlight = None

    def _split(self, text: str, limit: int) -> list[_Unit]:
        units = []
        pos = 0
        for section, paragraph in enumerate(p for p in _PARAGRAPH_SPLIT_RE.split(text) if p.strip()):
            sentences = split_sentences(paragraph)
            for i in range(0, len(sentences), limit):
                unit = _Unit(section, sentences[i:i + limit])
                for sentence in unit.sentences:
                    pos = self._locate(sentence, pos)
                    unit.offsets.append(pos)
                    pos += len(sentence)
                units.append(unit)
        logger.debug("Split document into %d units", len(units))
        return units

    def _locate(self, sentence: str, pos: int) -> int:
        # Sentences had their whitespace collapsed, so only the first word is searched
        found = self.text.find(sentence.split(" ", 1)[0], pos)
        return found if found >= 0 else pos

    def init_tts(self, granularity, node_filter, highlight) -> None:
        self.granularity = granularity
        self.node_filter = node_filter
        self.highlight = highlight

    def _unit_at(self, index: int, first: int = 0) -> str:
        self.index = index
        self.mark = first
        unit = self.units[index]
        return build_unit(self.language.locale, unit.sentences[first:], first=first)

    def start(self) -> str | None:
        if not self.units:
            return None
        return self._unit_at(0)

    def next(self) -> str | None:
        if self.index + 1 >= len(self.units):
            return None
        return self._unit_at(self.index + 1)

    def prev(self) -> str | None:
        if self.index <= 0:
            return None
        return self._unit_at(self.index - 1)

    def resume(self) -> str | None:
        """The current unit from the last sentence reached."""
        if self.index < 0:
            return self.start()
        return self._unit_at(self.index, self.mark)

    def next_section(self) -> bool:
        """Move the cursor to the end of the current section so next() opens the following one."""
        if self.index < 0:
            return False
        section = self.units[self.index].section
        last = self.index
        while last + 1 < len(self.units) and self.units[last + 1].section == section:
            last += 1
        self.index = last
        return True

    def resolve_mark_to_range(self, name: str) -> tuple[int, int] | None:
        if self.index < 0:
            return None
        unit = self.units[self.index]
        try:
            i = int(name)
            start = unit.offsets[i]
        except (ValueError, IndexError):
            logger.warning("Unknown mark %r in unit %d", name, self.index)
            return None
        self.mark = i
        return start, start + len(unit.sentences[i])
