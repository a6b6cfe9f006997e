"""
Question Catalog
finclinic/scoring/questions.py

Sixteen single-choice questions answered on a 1-5 scale (5 = best answer).
Each question belongs to exactly one pillar and is worth up to 5 points.
Q16 (children planning) is asked only when the profile has children, which
raises the maximum score from 75 to 80.

Pillar            | Questions          | Budget
──────────────────┼────────────────────┼────────
income_stream     | q1, q2             | 10
monthly_expenses  | q3, q4, q5, q6     | 20
savings_habit     | q7, q8, q9         | 15
debt_management   | q10, q11, q12      | 15
retirement        | q13                |  5
protection        | q14                |  5
future_planning   | q15 (+ q16)        |  5 (10)
"""

from dataclasses import dataclass
from typing import Dict, List

from finclinic.models.enumerations import Pillar

MIN_ANSWER = 1
MAX_ANSWER = 5
POINTS_PER_QUESTION = MAX_ANSWER

# Declared pillar order, also used to break ties when ranking weak pillars
PILLAR_ORDER: List[Pillar] = [
    Pillar.INCOME_STREAM,
    Pillar.MONTHLY_EXPENSES,
    Pillar.SAVINGS_HABIT,
    Pillar.DEBT_MANAGEMENT,
    Pillar.RETIREMENT_PLANNING,
    Pillar.PROTECTION,
    Pillar.FUTURE_PLANNING,
]

PILLAR_NAMES: Dict[Pillar, str] = {
    Pillar.INCOME_STREAM: "Income Stream",
    Pillar.MONTHLY_EXPENSES: "Monthly Expenses Management",
    Pillar.SAVINGS_HABIT: "Savings Habit",
    Pillar.DEBT_MANAGEMENT: "Debt Management",
    Pillar.RETIREMENT_PLANNING: "Retirement Planning",
    Pillar.PROTECTION: "Protecting Your Assets | Loved Ones",
    Pillar.FUTURE_PLANNING: "Planning for Your Future | Siblings",
}


@dataclass(frozen=True)
class Question:
    id: str
    number: int
    text: str
    pillar: Pillar
    conditional: bool = False


QUESTIONS: List[Question] = [
    Question("q1_income_stability", 1,
             "My income is stable and predictable each month.",
             Pillar.INCOME_STREAM),
    Question("q2_income_sources", 2,
             "I have more than one source of income (e.g., side business, investments).",
             Pillar.INCOME_STREAM),
    Question("q3_living_expenses", 3,
             "I can cover my essential living expenses without financial strain.",
             Pillar.MONTHLY_EXPENSES),
    Question("q4_budget_tracking", 4,
             "I follow a monthly budget and track my expenses.",
             Pillar.MONTHLY_EXPENSES),
    Question("q5_spending_control", 5,
             "I spend less than I earn every month.",
             Pillar.MONTHLY_EXPENSES),
    Question("q6_expense_review", 6,
             "I regularly review and reduce unnecessary expenses.",
             Pillar.MONTHLY_EXPENSES),
    Question("q7_savings_rate", 7,
             "I save from my income every month.",
             Pillar.SAVINGS_HABIT),
    Question("q8_emergency_fund", 8,
             "I have an emergency fund to cater for my expenses.",
             Pillar.SAVINGS_HABIT),
    Question("q9_savings_optimization", 9,
             "I keep my savings in safe, return generating accounts or investments.",
             Pillar.SAVINGS_HABIT),
    Question("q10_payment_history", 10,
             "I pay all my bills and loan installments on time.",
             Pillar.DEBT_MANAGEMENT),
    Question("q11_debt_ratio", 11,
             "My debt repayments are less than 30% of my monthly income.",
             Pillar.DEBT_MANAGEMENT),
    Question("q12_credit_score", 12,
             "I understand my credit score and actively maintain or improve it.",
             Pillar.DEBT_MANAGEMENT),
    Question("q13_retirement_planning", 13,
             "I have a retirement savings plan or pension fund in place to secure a stable income at retirement.",
             Pillar.RETIREMENT_PLANNING),
    Question("q14_insurance_coverage", 14,
             "I have adequate takaful cover (insurance) - (health, life, motor, property).",
             Pillar.PROTECTION),
    Question("q15_financial_planning", 15,
             "I have a written financial plan with goals for the next 3-5 years.",
             Pillar.FUTURE_PLANNING),
    Question("q16_children_planning", 16,
             "I have adequately planned my children's future for school, university and career start-up.",
             Pillar.FUTURE_PLANNING,
             conditional=True),
]

QUESTIONS_BY_ID: Dict[str, Question] = {q.id: q for q in QUESTIONS}

CONDITIONAL_QUESTION_ID = "q16_children_planning"


def questions_for(has_children: bool) -> List[Question]:
    """Questions shown to a respondent, in display order."""
    return [q for q in QUESTIONS if has_children or not q.conditional]


def pillar_budgets(has_children: bool) -> Dict[Pillar, int]:
    """Point budget per pillar, in declared pillar order."""
    budgets = {p: 0 for p in PILLAR_ORDER}
    for q in questions_for(has_children):
        budgets[q.pillar] += POINTS_PER_QUESTION
    return budgets


def max_possible_score(has_children: bool) -> int:
    return len(questions_for(has_children)) * POINTS_PER_QUESTION
