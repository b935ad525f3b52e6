SHIFT_PARTS = ("morning", "noon", "evening")

DEFAULT_CLOSED_DAYS = ["friday"]
DEFAULT_SHIFTS_PER_DAY = 2
MIN_SHIFTS_PER_DAY = 1
MAX_SHIFTS_PER_DAY = 10

# Employee shift lookups default to this many days ahead.
EMPLOYEE_SHIFT_HORIZON_DAYS = 30

ONBOARDING_REDIRECT = "/auth/complete-profile"
PENDING_APPROVAL_REDIRECT = "/auth/pending-approval"
MANAGER_HOME = "/manager/dashboard"
EMPLOYEE_HOME = "/employee/dashboard"

SESSION_IDENTITY_KEY = "identity"
