"""Suggested actions for an assistant reply"""

from typing import List

from onchain_budget.constants import ACTION_RULES, ActionTier
from onchain_budget.models import SuggestedAction

WELCOME_ACTIONS = (
    ("connect-bank", "Connect Bank Account", ActionTier.PRIMARY),
    ("view-portfolio", "View Portfolio", ActionTier.SECONDARY),
)


def suggest_actions(user_message: str) -> List[SuggestedAction]:
    """
    Keyword-scan the user's message for topics and suggest follow-up actions.

    Each rule contributes at most one action, in rule order.
    """
    message = (user_message or "").lower()
    return [
        SuggestedAction(id=action_id, label=label, type=tier)
        for keywords, action_id, label, tier in ACTION_RULES
        if any(keyword in message for keyword in keywords)
    ]


def welcome_actions() -> List[SuggestedAction]:
    return [SuggestedAction(id=action_id, label=label, type=tier) for action_id, label, tier in WELCOME_ACTIONS]
