"""
常见AI表达模式目录 - built-in catalogue of typical machine-generated Hebrew phrasings
Every bad phrase is whole words, so it can be found by the phrase matcher.
"""
from typing import Dict, List, Optional

from correction_engine.db.models import PatternType
from correction_engine.services.types import PatternSeed

# Catalogue kinds collapse onto the stored pattern types
_KIND_TO_TYPE: Dict[str, PatternType] = {
    "ai-style": PatternType.AI_STYLE,
    "grammar": PatternType.GENERAL,
    "style": PatternType.GENERAL,
    "formality": PatternType.GENERAL,
}

# (bad phrase, good phrase, kind, confidence, category, explanation)
_CATALOGUE = [
    # פורמליות יתר
    ("על מנת", "כדי", "ai-style", 0.95, "פורמליות יתר", "ביטוי פורמלי מדי"),
    ("בהתאם לכך", "לכן", "ai-style", 0.9, "פורמליות יתר", "\"בהתאם לכך\" פורמלי מדי לעברית יומיומית"),
    ("במטרה", "כדי", "ai-style", 0.9, "פורמליות יתר", "ביטוי AI אופייני"),
    ("בדרך כלל", "לרוב", "ai-style", 0.8, "פורמליות יתר", "\"לרוב\" קצר וטבעי יותר"),
    # אנגליציזמים
    ("אקטואלי", "עדכני", "ai-style", 0.95, "אנגליציזמים", "אנגליציזם"),
    ("פוטנציאלי", "אפשרי", "ai-style", 0.9, "אנגליציזמים", "אנגליציזם"),
    ("קריטי", "חיוני", "ai-style", 0.9, "אנגליציזמים", "אנגליציזם"),
    ("אופטימלי", "מיטבי", "ai-style", 0.9, "אנגליציזמים", "אנגליציזם"),
    ("ריאליסטי", "מציאותי", "ai-style", 0.95, "אנגליציזמים", "המילה העברית היא \"מציאותי\""),
    ("פרקטי", "מעשי", "ai-style", 0.95, "אנגליציזמים", "המילה העברית היא \"מעשי\""),
    ("אפקטיבי", "יעיל", "ai-style", 0.95, "אנגליציזמים", "המילה העברית היא \"יעיל\""),
    # תרגום ישיר
    ("להביא בחשבון", "לקחת בחשבון", "ai-style", 0.95, "תרגום ישיר", "בעברית לוקחים בחשבון"),
    ("מהווה", "הוא", "ai-style", 0.85, "תרגום ישיר", "תרגום ישיר"),
    ("בסוף היום", "בסופו של דבר", "ai-style", 0.95, "תרגום ישיר", "at the end of the day"),
    ("לקחת את זה לשלב הבא", "להתקדם", "ai-style", 0.9, "תרגום ישיר", "ביטוי AI אופייני"),
    ("לתת ערך", "להועיל", "ai-style", 0.85, "תרגום ישיר", "תרגום ישיר"),
    # סדר מילים
    ("זה הוא", "זה", "grammar", 0.9, "סדר מילים", "\"הוא\" מיותר"),
    ("זאת היא", "זאת", "grammar", 0.9, "סדר מילים", "\"היא\" מיותר"),
    ("אלה הם", "אלה", "grammar", 0.9, "סדר מילים", "\"הם\" מיותר"),
    # ביטויי AI
    ("אני רוצה להודות", "תודה", "ai-style", 0.85, "ביטויי AI", "ניפוח מיותר"),
    ("אני מבקש ממך בבקשה", "אני מבקש", "ai-style", 0.9, "ביטויי AI", "כפילות"),
    ("אני אשמח מאוד", "אשמח", "ai-style", 0.8, "ביטויי AI", "\"מאוד\" מיותר"),
    ("בהתאם לבקשתך", "כפי שביקשת", "ai-style", 0.85, "ביטויי AI", "פורמלי מדי"),
    ("אני פונה אליכם", "אני פונה אליך", "ai-style", 0.75, "ביטויי AI", "בהקשר אישי"),
    # מילים מיותרות
    ("משמעותי באופן", "משמעותית", "style", 0.9, "מילים מיותרות", "\"באופן\" מיותר"),
    ("חשוב באופן", "חשוב מאוד", "style", 0.85, "מילים מיותרות", "\"באופן\" מיותר"),
    ("גדול באופן", "גדול מאוד", "style", 0.85, "מילים מיותרות", "\"באופן\" מיותר"),
    ("להשפיע על באופן", "להשפיע על", "style", 0.85, "מילים מיותרות", "\"באופן\" מיותר"),
    ("בצורה משמעותית", "משמעותית", "style", 0.8, "מילים מיותרות", "\"בצורה\" מיותר"),
    ("בצורה יעילה", "ביעילות", "style", 0.8, "מילים מיותרות", "תמציתי יותר"),
    ("בצורה מהירה", "במהירות", "style", 0.8, "מילים מיותרות", "תמציתי יותר"),
    ("בנוסף לכך", "בנוסף", "style", 0.8, "מילים מיותרות", "\"לכך\" מיותר"),
    # סגנון
    ("יש לי", "אני", "style", 0.7, "סגנון", "תלוי בהקשר"),
    ("אנחנו צריכים", "עלינו", "style", 0.7, "סגנון", "תמציתי יותר"),
    # ביטויי שיווק
    ("לספק פתרון", "לפתור", "ai-style", 0.75, "ביטויי שיווק AI", "ישיר יותר"),
    ("לקדם את", "להתקדם ב", "ai-style", 0.7, "ביטויי שיווק AI", "תלוי בהקשר"),
    # כפילויות
    ("מאוד מאוד", "מאוד", "style", 0.95, "כפילויות", "מספיק \"מאוד\" אחד"),
    ("גם כן", "גם", "style", 0.85, "כפילויות", "\"גם\" מספיק"),
    # דקדוק
    ("אני אהבה", "אני אוהב/ת", "grammar", 0.95, "דקדוק", "\"אהבה\" היא שם עצם"),
    ("הוא צריכה", "הוא צריך", "grammar", 0.95, "דקדוק", "התאמת מגדר"),
    ("היא צריך", "היא צריכה", "grammar", 0.95, "דקדוק", "התאמת מגדר"),
    # פורמליות
    ("להיות מסוגל", "יכול", "style", 0.85, "פורמליות יתר", "\"יכול\" טבעי יותר"),
    ("לבצע פעולה", "לפעול", "style", 0.8, "פורמליות יתר", "תמציתי יותר"),
    ("בעקבות", "בגלל", "formality", 0.75, "פורמליות יתר", "תלוי בהקשר"),
    ("לאור העובדה", "מכיוון ש", "formality", 0.85, "פורמליות יתר", "פשוט יותר"),
    ("יתרה מכך", "יתר על כן", "style", 0.75, "ביטויים", "הביטוי התקני"),
]


def common_ai_patterns(min_confidence: Optional[float] = None) -> List[PatternSeed]:
    """Catalogue entries as seeds, optionally only those at or above ``min_confidence``."""
    seeds = [
        PatternSeed(
            bad_phrase=bad,
            good_phrase=good,
            pattern_type=_KIND_TO_TYPE[kind],
            confidence=confidence,
            category=category,
            explanation=explanation,
        )
        for bad, good, kind, confidence, category, explanation in _CATALOGUE
    ]
    if min_confidence is None:
        return seeds
    return [seed for seed in seeds if seed.confidence >= min_confidence]

