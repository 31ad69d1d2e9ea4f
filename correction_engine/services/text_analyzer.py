"""
文本分析服务 - scores a draft for translated-sounding Hebrew and proposes patterns

Three detectors run in order: word-order rules, the built-in phrase catalogue,
then single words carrying an anglicism stem. A span claimed by an earlier
detector is not reported again.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from correction_engine.core.config import Settings
from correction_engine.core.errors import ValidationError
from correction_engine.core.logging import LogEvent
from correction_engine.db.models import PatternType
from correction_engine.repositories.base import PatternStore
from correction_engine.services.base_service import BaseService
from correction_engine.services.common_patterns import common_ai_patterns
from correction_engine.services.pattern_matcher import apply_matches, find_matches, phrase_regex
from correction_engine.services.tokenizer import token_index_at, tokenize
from correction_engine.services.types import Match, PatternSeed, Span

PERFECT_SCORE = 100


class IssueType(str, Enum):
    LITERAL_TRANSLATION = "literal-translation"
    ANGLICISM = "anglicism"
    WORD_ORDER = "word-order"


# Score deducted per reported issue
PENALTIES: Dict[IssueType, int] = {
    IssueType.LITERAL_TRANSLATION: 5,
    IssueType.ANGLICISM: 3,
    IssueType.WORD_ORDER: 4,
}

# "זה הוא X" -> "זה X"; the pronoun must be followed by more text
_WORD_ORDER_RULES: Tuple[Tuple[re.Pattern, str], ...] = tuple(
    (re.compile(rf"(?<!\w)({subject})\s+{pronoun}(?=\s+\S)"), subject)
    for subject, pronoun in (("זה", "הוא"), ("זאת", "היא"), ("אלה", "הם"))
)
_WORD_ORDER_CONFIDENCE = 0.9
_WORD_ORDER_EXPLANATION = "סדר מילים לא טבעי - מיותר להוסיף את המילה הנוספת"

# Stems of loanwords and stiff connectives; any word containing one is flagged
ANGLICISM_STEMS: Tuple[str, ...] = (
    "אקטואלי", "קונקרטי", "פוטנציאלי", "קריטי", "אופטימלי",
    "ריאליסטי", "פרקטי", "תיאורטי", "אופרטיבי", "אפקטיבי",
    "מהווה", "בהתאם", "במטרה", "באופן", "בדרך",
)
_ANGLICISM_CONFIDENCE = 0.6
_ANGLICISM_SUGGESTION = "נסה להשתמש במילה עברית יותר טבעית"

_LITERAL_EXPLANATION = "ביטוי שנשמע כמו תרגום ישיר"


@dataclass(slots=True)
class TextIssue:
    issue_type: IssueType
    span: Span
    suggestion: str
    confidence: float
    explanation: str
    pattern_type: PatternType = PatternType.AI_STYLE

    @property
    def penalty(self) -> int:
        return PENALTIES[self.issue_type]


@dataclass(slots=True)
class TextAnalysis:
    """Issues in reading order and a 0-100 score (100 reads as native Hebrew)."""

    issues: List[TextIssue] = field(default_factory=list)
    score: int = PERFECT_SCORE
    advice: List[str] = field(default_factory=list)

    def count(self, issue_type: IssueType) -> int:
        return sum(1 for issue in self.issues if issue.issue_type is issue_type)


@dataclass(slots=True)
class PatternSuggestions:
    score: int
    patterns: List[PatternSeed]


@dataclass(slots=True)
class ReviewReport:
    """Analysis of a draft before and after the user's confident patterns were applied."""

    analysis: TextAnalysis
    rewritten_text: str
    applied: List[Match] = field(default_factory=list)
    revised: Optional[TextAnalysis] = None

    @property
    def score_improvement(self) -> Optional[int]:
        if self.revised is None:
            return None
        return self.revised.score - self.analysis.score

    @property
    def issues_fixed(self) -> Optional[int]:
        if self.revised is None:
            return None
        return len(self.analysis.issues) - len(self.revised.issues)


def advice_for(analysis: TextAnalysis) -> List[str]:
    """General advice lines derived from how often each kind of issue occurs."""
    advice: List[str] = []
    if analysis.count(IssueType.ANGLICISM) > 2:
        advice.append("📝 יש שימוש רב באנגליציזמים - נסה להחליף במילים עבריות טבעיות יותר")
    if analysis.count(IssueType.LITERAL_TRANSLATION) > 2:
        advice.append("🔄 הטקסט נראה כמו תרגום ישיר - נסה לכתוב בעברית טבעית יותר")
    if analysis.count(IssueType.WORD_ORDER) > 1:
        advice.append("📐 סדר המילים לא טבעי - בעברית משתמשים בצורה יותר תמציתית")
    if not analysis.issues:
        advice.append("🎉 מצוין! הטקסט בעברית טבעית ותקנית")
    elif not advice:
        advice.append("✅ הטקסט טוב, אבל אפשר לשפר כמה ביטויים")
    return advice


class TextAnalyzer(BaseService):
    """
    文本分析器

    ``analyze`` and ``suggest_patterns`` are pure and need no store; ``review``
    also applies the user's own confident patterns and re-scores the result.
    """

    def __init__(
        self,
        store: Optional[PatternStore] = None,
        settings: Settings = None,
        catalogue: Optional[Sequence[PatternSeed]] = None,
    ):
        super().__init__(settings)
        self.store = store
        self.catalogue: Tuple[PatternSeed, ...] = tuple(
            common_ai_patterns() if catalogue is None else catalogue
        )

    def analyze(self, text: str) -> TextAnalysis:
        if not text or not text.strip():
            raise ValidationError("Text is empty", field="text")

        tokens = tokenize(text)
        claimed: List[Span] = []
        issues: List[TextIssue] = []

        def report(issue: TextIssue) -> None:
            if any(issue.span.overlaps(span.start_offset, span.end_offset) for span in claimed):
                return
            claimed.append(issue.span)
            issues.append(issue)

        def span_of(start: int, end: int) -> Span:
            return Span(text[start:end], start, end, token_index_at(tokens, start))

        for rule, subject in _WORD_ORDER_RULES:
            for found in rule.finditer(text):
                report(TextIssue(
                    IssueType.WORD_ORDER,
                    span_of(found.start(), found.end()),
                    suggestion=subject,
                    confidence=_WORD_ORDER_CONFIDENCE,
                    explanation=_WORD_ORDER_EXPLANATION,
                    pattern_type=PatternType.GENERAL,
                ))

        for seed in self.catalogue:
            if not seed.good_phrase:
                continue
            for found in phrase_regex(seed.bad_phrase).finditer(text):
                report(TextIssue(
                    IssueType.LITERAL_TRANSLATION,
                    span_of(found.start(), found.end()),
                    suggestion=seed.good_phrase,
                    confidence=seed.confidence,
                    explanation=seed.explanation or _LITERAL_EXPLANATION,
                    pattern_type=seed.pattern_type,
                ))

        for token in tokens:
            stem = next((stem for stem in ANGLICISM_STEMS if stem in token.text), None)
            if stem is None:
                continue
            report(TextIssue(
                IssueType.ANGLICISM,
                span_of(token.start_offset, token.end_offset),
                suggestion=_ANGLICISM_SUGGESTION,
                confidence=_ANGLICISM_CONFIDENCE,
                explanation=f'המילה "{token.text}" היא אנגליציזם או מילה פורמלית מדי',
            ))

        issues.sort(key=lambda issue: issue.span.start_offset)
        score = PERFECT_SCORE - sum(issue.penalty for issue in issues)
        analysis = TextAnalysis(issues=issues, score=max(0, min(PERFECT_SCORE, score)))
        analysis.advice = advice_for(analysis)
        return analysis

    def suggest_patterns(self, text: str) -> PatternSuggestions:
        """Confident issues as importable seeds, most confident first, one per (bad, good) pair."""
        analysis = self.analyze(text)
        threshold = self.settings.analysis_min_confidence

        seen = set()
        patterns: List[PatternSeed] = []
        confident = [issue for issue in analysis.issues if issue.confidence >= threshold]
        for issue in sorted(confident, key=lambda issue: issue.confidence, reverse=True):
            key = (issue.span.text, issue.suggestion)
            if key in seen:
                continue
            seen.add(key)
            patterns.append(PatternSeed(
                bad_phrase=issue.span.text,
                good_phrase=issue.suggestion,
                pattern_type=issue.pattern_type,
                confidence=issue.confidence,
                category=issue.issue_type.value,
                explanation=issue.explanation,
            ))

        self.logger.info(
            LogEvent.TEXT_ANALYZED,
            text_length=len(text),
            score=analysis.score,
            issues=len(analysis.issues),
            suggested=len(patterns),
        )
        return PatternSuggestions(score=analysis.score, patterns=patterns)

    async def review(self, user_id: str, text: str, apply: bool = True) -> ReviewReport:
        """Analyse ``text``; optionally rewrite it with the user's confident patterns and re-score."""
        analysis = self.analyze(text)
        report = ReviewReport(analysis=analysis, rewritten_text=text)
        if not apply or self.store is None:
            return report

        threshold = self.settings.analysis_min_confidence
        patterns = await self.store.top_by_confidence(
            user_id,
            limit=self.settings.analysis_pattern_limit,
        )
        confident = [pattern for pattern in patterns if pattern.confidence >= threshold]
        rewritten, applied = apply_matches(text, find_matches(text, confident))
        if applied:
            report.rewritten_text = rewritten
            report.applied = applied
            report.revised = self.analyze(rewritten)

        self.logger.info(
            LogEvent.TEXT_ANALYZED,
            user_id=user_id,
            text_length=len(text),
            score=analysis.score,
            issues=len(analysis.issues),
            applied=len(applied),
        )
        return report
