from __future__ import annotations

from dataclasses import dataclass

from jotter_api.domain.entities import KeywordDetected, NoteItem

from .segmenter import TODO_KEYWORD


@dataclass(frozen=True)
class KeywordMatch:
    keyword: str
    pre_text: str
    post_text: str


class KeywordDetector:
    def __init__(self, keywords: list[str] | None = None) -> None:
        self._keywords: list[str] = []
        for keyword in keywords if keywords is not None else [TODO_KEYWORD]:
            self.register(keyword)

    @property
    def keywords(self) -> list[str]:
        return list(self._keywords)

    def register(self, keyword: str) -> None:
        cleaned = keyword.strip().lower()
        if not cleaned:
            raise ValueError("keyword_empty")
        if cleaned not in self._keywords:
            self._keywords.append(cleaned)

    def match(self, text: str) -> KeywordMatch | None:
        """Earliest registered keyword in ``text``, case-insensitive."""
        haystack = text.lower()
        best: tuple[int, str] | None = None
        for keyword in self._keywords:
            pos = haystack.find(keyword)
            if pos == -1:
                continue
            if best is None or pos < best[0] or (pos == best[0] and len(keyword) > len(best[1])):
                best = (pos, keyword)
        if best is None:
            return None
        pos, keyword = best
        return KeywordMatch(
            keyword=keyword,
            pre_text=text[:pos],
            post_text=text[pos + len(keyword) :].lstrip(),
        )

    def detect(self, item: NoteItem) -> KeywordDetected | None:
        found = self.match(item.text)
        if found is None:
            return None
        return KeywordDetected(
            source=item,
            keyword=found.keyword,
            pre_text=found.pre_text,
            post_text=found.post_text,
        )
