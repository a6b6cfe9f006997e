# finclinic/scoring/pillar_calculator.py
"""
Pillar Score Calculator
-----------------------
Turns raw answers (question id -> 1..5) and the children flag into seven
pillar scores, a total score and an overall interpretation.

Formula:
    pillar.score      = mean(answered values in pillar)          (0 if none)
    pillar.points     = Σ answered values in pillar
    pillar.max_points = 5 × questions in pillar shown to the respondent
    percentage        = pillar.score / 5 × 100
    total_score       = Σ pillar.points  ==  Σ all answered values

Max possible score is 75, or 80 when Q16 (children planning) is included.

The remote scoring service is authoritative; this module is the local
preview / fallback and must stay numerically consistent with it.
"""
import structlog
from typing import Dict, List, Mapping

from finclinic.core.exceptions import ValidationError
from finclinic.models.enumerations import InterpretationBand, Pillar
from finclinic.models.score import PillarScore, ScoreResult
from finclinic.scoring.questions import (
    MAX_ANSWER,
    MIN_ANSWER,
    PILLAR_ORDER,
    QUESTIONS_BY_ID,
    max_possible_score,
    pillar_budgets,
)
from finclinic.scoring.utils import mean, percentage

logger = structlog.get_logger(__name__)

_PILLAR_FOCUS: Dict[Pillar, str] = {
    Pillar.INCOME_STREAM: "income stability and diversification",
    Pillar.MONTHLY_EXPENSES: "expense management and budgeting",
    Pillar.SAVINGS_HABIT: "saving behavior and emergency preparedness",
    Pillar.DEBT_MANAGEMENT: "debt control and payment history",
    Pillar.RETIREMENT_PLANNING: "retirement preparation",
    Pillar.PROTECTION: "insurance and risk protection",
    Pillar.FUTURE_PLANNING: "financial planning and goal setting",
}


def interpretation_band(score: float) -> InterpretationBand:
    """Band for a 0-5 pillar score."""
    if score >= 4.0:
        return InterpretationBand.EXCELLENT
    if score >= 3.0:
        return InterpretationBand.GOOD
    if score >= 2.0:
        return InterpretationBand.NEEDS_IMPROVEMENT
    return InterpretationBand.AT_RISK


def overall_interpretation(total_score: float) -> InterpretationBand:
    """
    Band for the total score.

    Thresholds are absolute on the 0-75/80 scale and are deliberately not
    rescaled for the 80-point children variant.
    """
    if total_score >= 60:
        return InterpretationBand.EXCELLENT
    if total_score >= 45:
        return InterpretationBand.GOOD
    if total_score >= 30:
        return InterpretationBand.NEEDS_IMPROVEMENT
    return InterpretationBand.AT_RISK


def describe_pillar(pillar: Pillar, score: float) -> str:
    """One-line description shown next to a pillar score."""
    return f"{interpretation_band(score).value} {_PILLAR_FOCUS[pillar]}"


def validate_responses(responses: Mapping[str, int], has_children: bool) -> None:
    """
    Raise ValidationError for unknown question ids, out-of-range values, or the
    conditional question when it does not apply.
    """
    for question_id, value in responses.items():
        question = QUESTIONS_BY_ID.get(question_id)
        if question is None:
            raise ValidationError(f"Unknown question '{question_id}'", field=question_id)
        if question.conditional and not has_children:
            raise ValidationError(
                f"Question '{question_id}' only applies to respondents with children",
                field=question_id,
            )
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"Answer to '{question_id}' must be an integer", field=question_id)
        if not MIN_ANSWER <= value <= MAX_ANSWER:
            raise ValidationError(
                f"Answer to '{question_id}' must be between {MIN_ANSWER} and {MAX_ANSWER}",
                field=question_id,
            )


def total_from_responses(responses: Mapping[str, int]) -> int:
    """Total score straight from the flat response list."""
    return sum(responses.values())


def total_from_pillars(pillar_scores: List[PillarScore]) -> float:
    """Total score as the sum of per-pillar contributions."""
    return sum(p.points for p in pillar_scores)


class PillarCalculator:
    """Deterministic, side-effect-free scoring of a completed questionnaire."""

    def calculate(self, responses: Mapping[str, int], has_children: bool = False) -> ScoreResult:
        """
        Args:
            responses: question id -> answer (1-5). Unanswered questions are
                       simply absent.
            has_children: Whether Q16 is part of the questionnaire.

        Returns:
            ScoreResult with seven PillarScores in declared pillar order.
        """
        validate_responses(responses, has_children)

        answers: Dict[Pillar, List[int]] = {p: [] for p in PILLAR_ORDER}
        for question_id, value in responses.items():
            answers[QUESTIONS_BY_ID[question_id].pillar].append(value)

        budgets = pillar_budgets(has_children)
        pillar_scores: List[PillarScore] = []
        for pillar in PILLAR_ORDER:
            values = answers[pillar]
            score = mean(values)
            pillar_scores.append(
                PillarScore(
                    pillar=pillar,
                    score=float(score),
                    points=sum(values),
                    max_points=budgets[pillar],
                    percentage=float(percentage(score)),
                    interpretation=interpretation_band(float(score)),
                )
            )

        total = total_from_pillars(pillar_scores)

        result = ScoreResult(
            total_score=total,
            max_possible_score=max_possible_score(has_children),
            pillar_scores=pillar_scores,
            interpretation=overall_interpretation(total),
        )

        logger.debug(
            "score_calculated",
            has_children=has_children,
            answered=len(responses),
            total_score=result.total_score,
            max_possible_score=result.max_possible_score,
            interpretation=result.interpretation.value,
        )
        return result


_calculator = PillarCalculator()


def compute_score(responses: Mapping[str, int], has_children: bool = False) -> ScoreResult:
    """Module-level entry point for the scoring pipeline."""
    return _calculator.calculate(responses, has_children)
