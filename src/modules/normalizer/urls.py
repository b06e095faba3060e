from urllib.parse import urljoin, urlsplit


def is_absolute(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def absolutize(url: str, *bases: str) -> str:
    """Resolve ``url`` against the first absolute base; '' when it stays relative.

    ``data:`` URIs resolve to '' and protocol-relative URLs are upgraded to https.
    """
    url = (url or "").strip()
    if not url or url.lower().startswith("data:"):
        return ""
    if url.startswith("//"):
        return "https:" + url
    if is_absolute(url):
        return url
    for base in bases:
        if base and is_absolute(base):
            try:
                url = urljoin(base, url)
            except ValueError:
                continue
            break
    return url if is_absolute(url) else ""


def canonical_url(url: str) -> str:
    """scheme://host/path, lowercased, with query and fragment dropped."""
    try:
        parts = urlsplit(url or "")
    except ValueError:
        return (url or "").split("?")[0].split("#")[0].lower()
    if not parts.scheme or not parts.netloc:
        return (url or "").split("?")[0].split("#")[0].lower()
    return f"{parts.scheme}://{parts.netloc}{parts.path}".lower()


def host_of(url: str) -> str:
    try:
        host = urlsplit(url or "").hostname
    except ValueError:
        host = None
    return host.lower() if host else "unknown"
