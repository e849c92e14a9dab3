"""granted — permission rules with deny-overrides, attached to your own objects.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import granted
>>> class Post(granted.Grantable):
...     pass
>>> class User(granted.Grantable):
...     def __init__(self, user_id):
...         self.id = user_id
>>> post = Post().grant("read", True).deny("read", lambda user, options: user.id == 1, guard=User)
>>> granted.can_blocking(User(2), "read", post).id
2
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------------
from granted.grantable import Grantable
from granted.registry import RuleRegistry
from granted.rules import Capability, Polarity, Rule
from granted.selectors import (
    ALL_RULES,
    AllRules,
    ByName,
    ByNameAndGuard,
    ByNameGuardAndCheck,
    RuleSelector,
)

# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------
from granted.evaluator import (
    EvaluationContext,
    RuleEvaluator,
    can,
    decide,
    get_default_evaluator,
    set_default_evaluator,
)
from granted.decision import Decision, Outcome
from granted.adapters import can_blocking, can_with_callback

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
from granted.errors import (
    DENIED_MARKER,
    Denied,
    InvalidTarget,
    NotDefined,
    NotGranted,
    RuleConfigError,
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from granted.config import ConfigLoader, EvaluationConfig, GrantedConfig
from granted.loader import RuleLoader, RuleSpec

__all__ = [
    "__version__",
    # Core
    "ALL_RULES",
    "AllRules",
    "ByName",
    "ByNameAndGuard",
    "ByNameGuardAndCheck",
    "Capability",
    "Grantable",
    "Polarity",
    "Rule",
    "RuleRegistry",
    "RuleSelector",
    # Evaluation
    "Decision",
    "EvaluationContext",
    "Outcome",
    "RuleEvaluator",
    "can",
    "can_blocking",
    "can_with_callback",
    "decide",
    "get_default_evaluator",
    "set_default_evaluator",
    # Errors
    "DENIED_MARKER",
    "Denied",
    "InvalidTarget",
    "NotDefined",
    "NotGranted",
    "RuleConfigError",
    # Configuration
    "ConfigLoader",
    "EvaluationConfig",
    "GrantedConfig",
    "RuleLoader",
    "RuleSpec",
]
