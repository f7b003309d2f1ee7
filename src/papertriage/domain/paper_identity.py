from __future__ import annotations

import re
from typing import Optional


_DOI_RE = re.compile(r"(?P<doi>10\.\d+/\S+)", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_doi(value: str | None) -> Optional[str]:
    text = (value or "").strip()
    if not text:
        return None

    lowered = text.lower()
    for marker in ("dx.doi.org/", "doi.org/"):
        idx = lowered.find(marker)
        if idx >= 0:
            text = text[idx + len(marker) :]
            break
    if text.lower().startswith("doi:"):
        text = text[4:]

    text = text.split("?", 1)[0].split("#", 1)[0].strip()
    match = _DOI_RE.search(text)
    if not match:
        return None
    return match.group("doi").rstrip(".,;").lower()


def extract_doi_from_url(url: str | None) -> Optional[str]:
    """Only URLs that point at a DOI resolver carry a usable DOI."""
    text = (url or "").strip()
    if "doi.org/" not in text.lower():
        return None
    return normalize_doi(text)


def normalize_title_key(title: str | None) -> str:
    return _WHITESPACE_RE.sub(" ", (title or "").strip()).lower()


def paper_identity_key(doi: str | None, title: str | None) -> str:
    """DOI when present, otherwise the case/whitespace-folded title."""
    doi_key = normalize_doi(doi) or (doi or "").strip().lower()
    if doi_key:
        return doi_key
    return normalize_title_key(title)
