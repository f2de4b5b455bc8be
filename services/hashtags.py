import re
import unicodedata
from typing import Iterable

MAX_HASHTAG_LEN = 64
HASHTAG_RE = re.compile(r"(?<!\w)#(\w+)", re.UNICODE)


def normalize_tag(raw: str) -> str:
    tag = unicodedata.normalize("NFKC", raw).strip().lstrip("#")
    return tag.lower()[:MAX_HASHTAG_LEN]


def extract_hashtags(text: str) -> list[str]:
    """#tags found in ``text``, normalized, first occurrence order"""
    if not text:
        return []
    return merge_hashtags(HASHTAG_RE.findall(text))


def merge_hashtags(*groups: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for raw in group:
            tag = normalize_tag(raw)
            if tag:
                seen.setdefault(tag, None)
    return list(seen)


def parse_hashtag_param(value: str | None) -> list[str]:
    """Comma separated query value into normalized tags"""
    if not value:
        return []
    return merge_hashtags(value.split(","))
