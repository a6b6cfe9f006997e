"""
scoring/: Financial Clinic Scoring Pipeline

Modules:
    utils.py              - Decimal utilities
    questions.py          - Question catalog, pillar order and point budgets
    pillar_calculator.py  - Pillar scores, total score, interpretation bands
    advice.py             - Overall and per-pillar advice messages
"""
