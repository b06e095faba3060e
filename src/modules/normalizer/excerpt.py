import re

from bs4 import BeautifulSoup

from src.modules.parser.markup import strip_markup

SUMMARY_MAX_CHARS = 300
MIN_PARAGRAPH_CHARS = 40
SYNTH_MIN_TEXT_CHARS = 120
SYNTH_PARAGRAPH_CHARS = 160
SYNTH_MAX_SENTENCES = 6

_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")
_P_TAG_RE = re.compile(r"<p[\s>]", re.IGNORECASE)


def truncate_summary(text: str, limit: int = SUMMARY_MAX_CHARS) -> str:
    return text[:limit].strip()


def _sentence_paragraphs(text: str) -> list[str]:
    sentences = _SENTENCE_END_RE.split(text)[:SYNTH_MAX_SENTENCES]
    if len(" ".join(sentences)) <= SYNTH_MIN_TEXT_CHARS:
        return []
    paragraphs: list[str] = []
    buf = ""
    for sentence in sentences:
        buf = f"{buf} {sentence}" if buf else sentence
        if len(buf) > SYNTH_PARAGRAPH_CHARS:
            paragraphs.append(buf)
            buf = ""
    if buf:
        paragraphs.append(buf)
    return paragraphs


def first_paragraphs(html: str, min_paras: int = 2, max_paras: int = 4) -> str:
    """Leading paragraphs of ``html`` as ``<p>…</p>`` markup.

    Paragraphs shorter than ``MIN_PARAGRAPH_CHARS`` of plain text are skipped.
    When the source has too few usable ``<p>`` elements, sentence groups of
    roughly paragraph size are synthesised from its plain text.
    """
    if not html:
        return ""
    out: list[str] = []
    # lxml wraps bare text in a <p>, so only scan markup that has real ones
    if _P_TAG_RE.search(html):
        for p in BeautifulSoup(html, "lxml").find_all("p"):
            if len(out) >= max_paras:
                break
            inner = p.decode_contents().strip()
            if len(strip_markup(inner)) >= MIN_PARAGRAPH_CHARS:
                out.append(inner)

    if len(out) < min_paras:
        synthesised = _sentence_paragraphs(strip_markup(html))
        while len(out) < max_paras and synthesised:
            out.append(synthesised.pop(0))

    return f"<p>{'</p><p>'.join(out)}</p>" if out else ""
