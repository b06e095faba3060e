import re

from bs4 import BeautifulSoup

_ENTITIES = {"amp": "&", "lt": "<", "gt": ">", "quot": '"', "#39": "'"}
_ENTITY_RE = re.compile(r"&(amp|lt|gt|quot|#39);")
_WS_RE = re.compile(r"\s+")


def decode_entities(text: str) -> str:
    # Single pass, so "&amp;lt;" decodes to "&lt;" and not to "<"
    return _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(1)], text or "")


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def strip_markup(html: str) -> str:
    """Plain text of an HTML fragment, script/style contents removed."""
    if not html:
        return ""
    if "<" not in html:
        return collapse_whitespace(html)
    soup = BeautifulSoup(html, "lxml")
    for tag in soup.find_all(["script", "style"]):
        tag.decompose()
    return collapse_whitespace(soup.get_text(" "))


def inline_image_sources(html: str) -> list[str]:
    """Every <img src> in an HTML fragment, in document order."""
    if not html or "<img" not in html.lower():
        return []
    soup = BeautifulSoup(html, "lxml")
    return [img["src"].strip() for img in soup.find_all("img", src=True) if img["src"].strip()]
