"""Prompt templates for alternative-phrasing requests (Hebrew)."""
from typing import Iterable, Optional, Sequence, Tuple

from correction_engine.services.types import GenerationConstraints

SUGGESTION_SYSTEM_PROMPT = (
    "אתה מומחה בעברית תקנית וטבעית. אתה מספק הצעות חלופיות לניסוח בעברית "
    "שמשפרות טקסטים שנוצרו על ידי AI והופכות אותם לעברית טבעית. "
    "**חשוב מאוד:** החזר תמיד JSON תקין בלבד, ללא טקסט נוסף."
)

_OUTPUT_FORMAT = """**פורמט הפלט - JSON בלבד:**
{
  "suggestions": [
    {
      "text": "אפשרות ניסוח",
      "explanation": "הסבר קצר למה אפשרות זו מתאימה",
      "tone": "רשמי / לא פורמלי / מקצועי",
      "whenToUse": "מתי להשתמש באפשרות זו"
    }
  ]
}

**חשוב מאוד:** החזר רק JSON תקין, ללא markdown, ללא הסברים נוספים."""


def forbidden_section(constraints: GenerationConstraints) -> str:
    """Learned phrasings to avoid, one ``- ❌ "bad" → ✅ "good"`` line each."""
    if not constraints:
        return ""
    lines = []
    for phrase in constraints.forbidden_phrases:
        replacement = constraints.replacements.get(phrase)
        if replacement:
            lines.append(f'- ❌ "{phrase}" → ✅ "{replacement}"')
        else:
            lines.append(f'- ❌ "{phrase}"')
    return "**ניסוחי AI להימנעות (נלמדו מהתיקונים שלך):**\n" + "\n".join(lines)


def synonyms_section(groups: Iterable[Tuple[str, Sequence[str]]]) -> str:
    lines = [f'"{primary}" (מועדף) ← [{", ".join(alternatives)}]' for primary, alternatives in groups]
    if not lines:
        return ""
    return (
        "**מילון מילים נרדפות (המילה המועדפת ראשונה, אחריה חלופות):**\n"
        + "\n".join(lines)
        + "\n\n**חשוב:** אם הטקסט הנבחר מכיל מילים מהמילון, השתמש במילה המועדפת."
    )


def build_suggestion_prompt(
    draft_text: str,
    selected_text: str,
    constraints: GenerationConstraints,
    context: Optional[str] = None,
    synonym_groups: Iterable[Tuple[str, Sequence[str]]] = (),
) -> str:
    sections = [
        "אתה עוזר לשיפור טקסטים בעברית שנוצרו על ידי AI. "
        "אני מבקש הצעות חלופיות לניסוח של טקסט ספציפי.",
        f"**הטקסט המלא:**\n{draft_text}",
        f'**הטקסט הנבחר (שצריך הצעות חלופיות):**\n"{selected_text}"',
        forbidden_section(constraints),
        synonyms_section(synonym_groups),
        f"**הקשר:** {context}" if context else "",
        (
            f'**בקשה:**\nצור 5-7 אפשרויות ניסוח חלופיות לטקסט הנבחר "{selected_text}". '
            "כל אפשרות צריכה להיות:\n"
            "- טבעית ונשמעת כמו עברית אמיתית, לא תרגום\n"
            "- שונה מהאחרות בגישת הניסוח\n"
            "- מתאימה להקשר של הטקסט המלא\n"
            "- נקייה מניסוחי AI מוכרים ומהניסוחים שברשימת ההימנעות\n"
            "- עברית תקנית וזורמת"
        ),
        _OUTPUT_FORMAT,
    ]
    return "\n\n".join(section for section in sections if section)
