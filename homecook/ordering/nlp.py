# homecook/ordering/nlp.py
from __future__ import annotations

import difflib
import re
from typing import Dict, List, Optional

# ----------------------------
# Synonyms (dish spellings people actually type)
# Keep this small; fuzzy matching does the heavy lifting.
# ----------------------------
_DEFAULT_SYNONYMS: Dict[str, str] = {
    "lasagne": "lasagna",
    "mac n cheese": "mac and cheese",
    "macaroni cheese": "mac and cheese",
    "biriyani": "biryani",
    "briyani": "biryani",
    "dahl": "dal",
    "daal": "dal",
    "expresso": "espresso",
    "bbq": "barbecue",
    "margarita": "margherita",
    "veggie": "vegetarian",
}

# Punctuation to spaces (keep letters/numbers/spaces)
_PUNCT_RE = re.compile(r"[^\w\s]+")

# Leading filler a search box tends to collect
_LEADING_FILLER_RE = re.compile(
    r"^\s*(?:"
    r"i\s*want|i'?d\s*like|looking\s*for|find\s*me|show\s*me|"
    r"homemade|home\s*made|home\s*cooked"
    r")\b[,\s]*",
    re.IGNORECASE,
)

_ARTICLES_RE = re.compile(r"^\s*(?:a|an|the|some)\b[,\s]*", re.IGNORECASE)


def default_synonyms() -> Dict[str, str]:
    return dict(_DEFAULT_SYNONYMS)


def _basic_normalize(s: str) -> str:
    """
    - lower
    - replace &/+ with 'and'
    - strip punctuation to spaces
    - collapse whitespace
    """
    s = (s or "").strip().lower()
    s = s.replace("&", " and ").replace("+", " and ")
    s = _PUNCT_RE.sub(" ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def strip_filler_prefix(raw: str) -> str:
    """
    "show me the lasagne" -> "lasagne"
    """
    s = (raw or "").strip()
    while True:
        s2 = _LEADING_FILLER_RE.sub("", s).strip()
        if s2 == s:
            break
        s = s2
    return _ARTICLES_RE.sub("", s).strip()


def _apply_dictionary_synonyms(s: str, synonyms: Dict[str, str]) -> str:
    """
    Longer keys first so "mac n cheese" wins over any shorter key inside it.
    """
    if not s:
        return s

    keys = sorted((k for k in (synonyms or {}) if k), key=len, reverse=True)
    for k in keys:
        v = synonyms.get(k)
        if not v:
            continue
        pattern = rf"(?<!\w){re.escape(_basic_normalize(k))}(?!\w)"
        s = re.sub(pattern, _basic_normalize(v), s)

    return re.sub(r"\s+", " ", s).strip()


def normalize_text(s: str, synonyms: Optional[Dict[str, str]] = None) -> str:
    """
    basic normalize -> strip filler -> dictionary synonyms -> collapse
    """
    syn = default_synonyms() if synonyms is None else synonyms
    s = _basic_normalize(s)
    s = strip_filler_prefix(s)
    s = _basic_normalize(s)
    s = _apply_dictionary_synonyms(s, syn)
    return re.sub(r"\s+", " ", s).strip()


def fuzzy_matches(keys: List[str], query: str, cutoff: float = 0.72, n: int = 10) -> List[str]:
    if not query or not keys:
        return []
    q = query.strip().lower()
    hits = [k for k in keys if k == q]
    for m in difflib.get_close_matches(q, keys, n=n, cutoff=cutoff):
        if m not in hits:
            hits.append(m)
    return hits[:n]
