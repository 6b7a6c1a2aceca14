from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..auth import AuthContext

DASHBOARD_PATH = "/dashboard"
AUTH_PATH = "/auth"


@dataclass(frozen=True)
class Feature:
    title: str
    description: str


FEATURES: List[Feature] = [
    Feature("Easy Task Management", "Create, edit, and organize your tasks with a simple interface."),
    Feature("Due Date Tracking", "Never miss a deadline with due dates and overdue alerts."),
    Feature("Priority Management", "Set priorities and focus on what matters most."),
    Feature("Personal & Secure", "Your tasks are private, visible only to your account."),
]


@dataclass(frozen=True)
class LandingOutcome:
    """What the index page should do: show 'loading', redirect, or show 'marketing'."""

    kind: str
    redirect_to: Optional[str] = None


# PUBLIC_INTERFACE
def resolve_landing(auth: AuthContext) -> LandingOutcome:
    if auth.is_loading:
        return LandingOutcome(kind="loading")
    if auth.is_authenticated:
        return LandingOutcome(kind="redirect", redirect_to=DASHBOARD_PATH)
    return LandingOutcome(kind="marketing")
