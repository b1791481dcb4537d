"""Generate and parse the SSML units spoken by the engine."""

import html
import re
from bisect import bisect_right
from xml.sax.saxutils import escape, quoteattr

from readaloud.constants import DEFAULT_LANG
from readaloud.models import Mark

# ISO 639-2 codes that show up in EPUB metadata
ISO_639_2_TO_1 = {
    "chi": "zh",
    "zho": "zh",
    "eng": "en",
    "jpn": "ja",
    "kor": "ko",
    "fra": "fr",
    "deu": "de",
    "spa": "es",
    "ita": "it",
    "rus": "ru",
    "ara": "ar",
    "por": "pt",
}

# Checked in order, first script found wins
SCRIPT_LANGS = (
    (re.compile("[\u4e00-\u9fff]"), "zh-CN"),
    (re.compile("[\u3040-\u309f\u30a0-\u30ff]"), "ja"),
    (re.compile("[\uac00-\ud7af]"), "ko"),
    (re.compile("[\u0600-\u06ff]"), "ar"),
    (re.compile("[\u0400-\u04ff]"), "ru"),
)

_XML_LANG_RE = re.compile(r'xml:lang\s*=\s*"([^"]+)"')
_VALID_LANG_RE = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")
_SPEAK_OPEN_RE = re.compile(r"<speak[^>]*>", re.IGNORECASE)
_SPEAK_CLOSE_RE = re.compile(r"</speak>", re.IGNORECASE)
_TOKEN_RE = re.compile(r"<(/?)(\w+)([^>]*)>|([^<]+)")
_MARK_NAME_RE = re.compile(r'name="([^"]+)"')
_LEADING_BREAK_RE = re.compile(r"^<break\b[^>]*>", re.IGNORECASE)
_EMPHASIS_RE = re.compile(r"<emphasis[^>]*>([^<]+)</emphasis>")


def _to_two_letter(lang: str) -> str | None:
    return ISO_639_2_TO_1.get(lang.lower())


def _same_lang(a: str, b: str) -> bool:
    return a.split("-")[0] == b.split("-")[0]


def _clean_text(text: str) -> str:
    """Collapse line breaks to spaces and trim leading whitespace."""
    text = text.replace("\r\n", "  ").replace("\r", " ").replace("\n", " ")
    return html.unescape(text).lstrip()


def infer_lang_from_script(text: str, fallback: str) -> str:
    """Guess a language from the Unicode scripts present in text."""
    for pattern, lang in SCRIPT_LANGS:
        if pattern.search(text):
            return lang
    return fallback


def generate(lang: str, text: str, voice_id: str, rate: float) -> str:
    """Wrap plain text in a single-voice, single-mark SSML unit.

    A leading <break> directive is dropped so the unit does not start
    with a duplicate pause.
    """
    text = _LEADING_BREAK_RE.sub("", text)
    return (
        f'<speak version="1.0" xml:lang={quoteattr(lang)}>'
        f"<voice name={quoteattr(voice_id)}>"
        f"<prosody rate={quoteattr(str(rate))}>"
        f'<mark name="0"/>{escape(text)}'
        "</prosody></voice></speak>"
    )


def build_unit(
    lang: str,
    sentences: list[str],
    voice_id: str | None = None,
    rate: float | None = None,
    first: int = 0,
) -> str:
    """Build a unit with one mark per sentence, named "0", "1", ...

    Numbering starts at first, so a unit resumed mid-way keeps its names.
    """
    body = "".join(
        f'<mark name="{i}"/>{escape(sentence)} ' for i, sentence in enumerate(sentences, first)
    )
    if rate is not None:
        body = f"<prosody rate={quoteattr(str(rate))}>{body}</prosody>"
    if voice_id:
        body = f"<voice name={quoteattr(voice_id)}>{body}</voice>"
    return f'<speak version="1.0" xml:lang={quoteattr(lang)}>{body}</speak>'


def _parse_explicit_lang(ssml: str) -> str | None:
    match = _XML_LANG_RE.search(ssml)
    if not match:
        return None
    parts = match.group(1).split("-")
    if len(parts) > 1:
        lang = f"{parts[0].lower()}-{parts[1].upper()}"
    else:
        lang = parts[0].lower()
    lang = _to_two_letter(lang) or lang
    if not _VALID_LANG_RE.match(lang):
        return None
    return lang


def parse_language(ssml: str, primary_lang: str | None = None) -> str:
    """Return the language a unit should be spoken in.

    A valid xml:lang on the unit wins. Generic "en" (parsed or defaulted)
    gives way to a primary language hint of another language. Whatever
    did not come from an explicit tag is finally checked against the
    scripts used in the unit text.
    """
    explicit = _parse_explicit_lang(ssml)
    lang = explicit or DEFAULT_LANG

    if primary_lang:
        primary_lang = _to_two_letter(primary_lang) or primary_lang
    if lang == DEFAULT_LANG and primary_lang and not _same_lang(lang, primary_lang):
        lang = primary_lang.split("-")[0].lower()
    if explicit and lang == explicit:
        return lang
    return infer_lang_from_script(ssml, lang)


def parse_marks(ssml: str, primary_lang: str | None = None) -> tuple[str, list[Mark]]:
    """Split a unit into its flattened plain text and its marks."""
    default_lang = parse_language(ssml, primary_lang) or DEFAULT_LANG
    ssml = _SPEAK_CLOSE_RE.sub("", _SPEAK_OPEN_RE.sub("", ssml, count=1), count=1)

    plain_text = ""
    marks = []
    active_mark = None
    current_lang = default_lang
    lang_stack = []

    for match in _TOKEN_RE.finditer(ssml):
        is_end, tag, attrs, raw_text = match.groups()
        if raw_text is not None:
            text = _clean_text(raw_text)
            if text and active_mark is not None:
                # Text under an explicit <lang> keeps that language
                language = current_lang if lang_stack else infer_lang_from_script(text, current_lang)
                marks.append(Mark(offset=len(plain_text), name=active_mark, text=text, language=language))
            plain_text += text
            continue

        if tag == "mark" and not is_end:
            name_match = _MARK_NAME_RE.search(attrs)
            if name_match:
                active_mark = name_match.group(1)
        elif tag == "lang":
            if not is_end:
                lang_stack.append(current_lang)
                lang_match = _XML_LANG_RE.search(attrs)
                if lang_match:
                    current_lang = lang_match.group(1)
            else:
                current_lang = lang_stack.pop() if lang_stack else default_lang

    return plain_text, marks


def find_mark_at(char_index: int, marks: list[Mark]) -> Mark | None:
    """Return the last mark starting at or before char_index."""
    idx = bisect_right(marks, char_index, key=lambda m: m.offset)
    return marks[idx - 1] if idx else None


def preprocess(ssml: str | None) -> str | None:
    """Normalise punctuation the synthesizer reads badly.

    Returns None for a missing or empty unit.
    """
    if not ssml:
        return None
    ssml = _EMPHASIS_RE.sub(r"\1", ssml)
    ssml = re.sub(r"[–—]", ",", ssml)
    ssml = ssml.replace("<break/>", " ", 1)
    ssml = re.sub(r"\.{3,}", "   ", ssml)
    ssml = ssml.replace("……", "  ")
    ssml = ssml.replace("*", " ").replace("·", " ")
    return ssml
