"""Synonym lookup for single-word alternatives."""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from correction_engine.services.base_service import singleton

_STRIP_PUNCTUATION_RE = re.compile(r"[.,!?;:]")


class SynonymLookup(Protocol):
    def lookup(self, word: str) -> List[str]:
        ...

    def prompt_groups(self) -> List[Tuple[str, Sequence[str]]]:
        """(primary, alternatives) pairs listed in the generation prompt."""
        ...


@dataclass(slots=True, frozen=True)
class SynonymGroup:
    primary: str
    alternatives: Tuple[str, ...]
    category: str
    context: Tuple[str, ...] = field(default_factory=tuple)


HEBREW_SYNONYMS: Tuple[SynonymGroup, ...] = (
    SynonymGroup("אני מצהיר", ("אני מכריז", "אני מודיע", "אני מבטיח", "אני מתחייב"), "formal"),
    SynonymGroup("בהתאם", ("לפי", "על פי", "בהתבסס על", "בהתאם ל"), "formal"),
    SynonymGroup("לפיכך", ("לכן", "משום כך", "על כן", "בשל כך"), "formal"),
    SynonymGroup("בנוסף", ("יתר על כן", "מעבר לכך", "גם כן", "כמו כן"), "formal"),
    SynonymGroup("לבסוף", ("לסיום", "בסיכום", "לסיכום"), "formal"),
    SynonymGroup("לקוח", ("מזמין", "מקבל שירות", "משתמש"), "business"),
    SynonymGroup("מוצר", ("פריט", "סחורה", "שירות", "פתרון"), "business"),
    SynonymGroup("מחיר", ("עלות", "תשלום", "תמורה"), "business"),
    SynonymGroup("איכות", ("רמה", "סטנדרט", "רמת ביצוע"), "business"),
    SynonymGroup("מחקר", ("חקירה", "בדיקה", "ניתוח", "סקירה"), "academic"),
    SynonymGroup("תוצאות", ("ממצאים", "הישגים"), "academic"),
    SynonymGroup("השערה", ("תיאוריה", "הנחה", "תחזית"), "academic"),
    SynonymGroup("יפה", ("מקסים", "נפלא", "מרהיב", "מעורר השראה"), "creative"),
    SynonymGroup("גדול", ("ענק", "עצום", "רב", "נרחב"), "creative"),
    SynonymGroup("קטן", ("זעיר", "מיניאטורי", "קטנטן"), "creative"),
    SynonymGroup("מערכת", ("פלטפורמה", "ממשק", "תשתית", "מבנה"), "technical"),
    SynonymGroup("פונקציה", ("תכונה", "יכולת", "פונקציונליות", "שירות"), "technical"),
    SynonymGroup("נתונים", ("מידע", "מאגר מידע", "בסיס נתונים"), "technical"),
    SynonymGroup("אני חושב", ("אני מאמין", "אני סבור", "אני מעריך", "לדעתי"), "informal"),
    SynonymGroup("אני רוצה", ("אני מעוניין", "אני מבקש", "אני מעדיף", "אני שואף"), "informal"),
    SynonymGroup("טוב", ("מעולה", "נהדר", "מצוין", "מושלם"), "informal"),
    SynonymGroup("רע", ("גרוע", "לא טוב", "בעייתי", "לא מתאים"), "informal"),
)


@singleton
class StaticSynonymDictionary:
    """Built-in Hebrew dictionary. Read-only."""

    def __init__(self, groups: Optional[Sequence[SynonymGroup]] = None):
        self.groups: Tuple[SynonymGroup, ...] = tuple(groups or HEBREW_SYNONYMS)

    def lookup(self, word: str) -> List[str]:
        """All words sharing a group with ``word``, excluding itself, first-seen order."""
        found: List[str] = []
        for group in self.groups:
            if word != group.primary and word not in group.alternatives:
                continue
            for candidate in (group.primary, *group.alternatives):
                if candidate != word and candidate not in found:
                    found.append(candidate)
        return found

    def prompt_groups(self) -> List[Tuple[str, Sequence[str]]]:
        return [(group.primary, group.alternatives) for group in self.groups]


def word_alternatives(
    selected_text: str,
    lookup: SynonymLookup,
    max_alternatives: int = 5,
) -> Dict[str, List[str]]:
    """Alternatives for each word of the selection longer than two characters."""
    alternatives: Dict[str, List[str]] = {}
    for word in (selected_text or "").split():
        if len(word) <= 2:
            continue
        clean = _STRIP_PUNCTUATION_RE.sub("", word)
        if not clean or clean in alternatives:
            continue
        found = lookup.lookup(clean)
        if found:
            alternatives[clean] = found[:max_alternatives]
    return alternatives
