from enum import Enum

class IdentityMode(str, Enum):
    GUEST = "guest"                                  # No end-user credential
    AUTHENTICATED_SIMPLE = "authenticated_simple"    # Identity-lite session
    AUTHENTICATED_FULL = "authenticated_full"        # Registered account token
    ADMIN_ONLY = "admin_only"                        # Admin token, no end-user session

class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class Pillar(str, Enum):
    INCOME_STREAM = "income_stream"
    MONTHLY_EXPENSES = "monthly_expenses"
    SAVINGS_HABIT = "savings_habit"
    DEBT_MANAGEMENT = "debt_management"
    RETIREMENT_PLANNING = "retirement_planning"
    PROTECTION = "protection"
    FUTURE_PLANNING = "future_planning"

class InterpretationBand(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    NEEDS_IMPROVEMENT = "Needs Improvement"
    AT_RISK = "At Risk"

class MigrationPolicy(str, Enum):
    CLEAR_ALWAYS = "clear_always"
    CLEAR_ON_FULL_SUCCESS = "clear_on_full_success"
