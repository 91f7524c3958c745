# Accent-insensitive matching for names, phones and subjects.
import re
import unicodedata
from functools import lru_cache

_EXTRA = str.maketrans({
    "đ": "d", "Đ": "d",
    "\u200c": "",  # ZWNJ
    "\u200e": "", "\u200f": "",  # LRM/RLM
})


def _normalize(s: str) -> str:
    if not s:
        return ""
    s = str(s).translate(_EXTRA)
    s = unicodedata.normalize("NFD", s)
    s = "".join(ch for ch in s if unicodedata.category(ch) != "Mn")
    s = re.sub(r"\s+", " ", s)
    return s.strip().casefold()


@lru_cache(maxsize=10000)
def normalize_text(s: str) -> str:
    return _normalize(s)


def normalize_phone(s: str) -> str:
    return re.sub(r"\D", "", str(s or ""))


def sort_key(s: str):
    return (normalize_text(s), str(s or ""))
