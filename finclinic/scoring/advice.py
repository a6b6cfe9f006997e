"""
Advice Generator
finclinic/scoring/advice.py

Builds the advice list shown with a result:

  1. one message for the overall band
  2. up to three messages for the weakest pillars scoring below 3.0
     (ties broken by declared pillar order)
  3. a single maintenance message instead, when no pillar is below 3.0

Pillar messages come from a fixed three-entry catalog per pillar; lower
scores select later, more urgent entries:

    index = min(floor((5 - score) × 3 / 4), 2)
"""

import math
from typing import Dict, List

from finclinic.models.enumerations import InterpretationBand, Pillar
from finclinic.models.score import PillarScore
from finclinic.scoring.pillar_calculator import overall_interpretation
from finclinic.scoring.questions import PILLAR_ORDER

WEAK_PILLAR_THRESHOLD = 3.0
MAX_PILLAR_MESSAGES = 3

MAINTENANCE_ADVICE = (
    "Your financial health is strong! Continue monitoring and optimizing "
    "your strategies for long-term success."
)

OVERALL_ADVICE: Dict[InterpretationBand, str] = {
    InterpretationBand.EXCELLENT: (
        "You have strong financial habits, clear goals, and good resilience. "
        "Maintain and optimize your strategies."
    ),
    InterpretationBand.GOOD: (
        "You're on the right track, but there's room for improvement in some areas. "
        "Focus on weak spots like debt, savings, or planning."
    ),
    InterpretationBand.NEEDS_IMPROVEMENT: (
        "Financial health is unstable. You should address debt, budgeting, and savings urgently."
    ),
    InterpretationBand.AT_RISK: (
        "High financial vulnerability. Immediate corrective actions are needed "
        "to stabilize your finances."
    ),
}

PILLAR_ADVICE: Dict[Pillar, List[str]] = {
    Pillar.INCOME_STREAM: [
        "Consider developing multiple income streams through side businesses or investments",
        "Focus on improving job security and skill development for stable income",
        "Explore passive income opportunities like dividends or rental properties",
    ],
    Pillar.MONTHLY_EXPENSES: [
        "Create and stick to a detailed monthly budget using budgeting apps",
        "Review and eliminate unnecessary expenses regularly",
        "Implement the 50/30/20 rule: 50% needs, 30% wants, 20% savings",
    ],
    Pillar.SAVINGS_HABIT: [
        "Start with saving at least 20% of your monthly income",
        "Build an emergency fund covering 6+ months of expenses",
        "Optimize your savings by using high-yield accounts and investments",
    ],
    Pillar.DEBT_MANAGEMENT: [
        "Focus on paying all bills and loan installments on time consistently",
        "Keep debt repayments below 30% of monthly income",
        "Monitor and actively work to improve your credit score",
    ],
    Pillar.RETIREMENT_PLANNING: [
        "Start or enhance your retirement savings plan immediately",
        "Consider pension funds and long-term investment options",
        "Plan for securing stable income during retirement years",
    ],
    Pillar.PROTECTION: [
        "Ensure you have adequate insurance coverage for health, life, motor, and property",
        "Review your insurance needs annually and adjust coverage accordingly",
        "Consider takaful options that align with your values and requirements",
    ],
    Pillar.FUTURE_PLANNING: [
        "Develop a written financial plan with clear 3-5 year goals",
        "If you have children, plan adequately for their education and future needs",
        "Review and update your financial plans regularly based on life changes",
    ],
}


def pillar_advice(pillar: Pillar, score: float) -> str:
    options = PILLAR_ADVICE[pillar]
    index = math.floor((5 - score) * len(options) / 4)
    return options[max(0, min(index, len(options) - 1))]


def generate_advice(pillar_scores: List[PillarScore], total_score: float) -> List[str]:
    """Overall message followed by targeted or maintenance advice."""
    advice = [OVERALL_ADVICE[overall_interpretation(total_score)]]

    order = {p: i for i, p in enumerate(PILLAR_ORDER)}
    weakest = sorted(
        (p for p in pillar_scores if p.score < WEAK_PILLAR_THRESHOLD),
        key=lambda p: (p.score, order[p.pillar]),
    )[:MAX_PILLAR_MESSAGES]

    if not weakest:
        advice.append(MAINTENANCE_ADVICE)
        return advice

    for pillar_score in weakest:
        advice.append(pillar_advice(pillar_score.pillar, pillar_score.score))
    return advice
