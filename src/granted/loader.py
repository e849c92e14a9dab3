"""YAML rule files applied to Grantable targets.

RuleLoader reads declarative rule files and registers the rules they
describe on a target. Checks and guards are never expressions: a check is
a literal boolean or the import path of a callable, and a guard is the
import path of a class or predicate, or a capability tag.

Schema
------
::

    version: "1.0"
    rules:
      - action: "read"
        effect: "allow"
        check: true
      - actions: ["write", "delete"]
        effect: "allow"
        check: "myapp.checks:is_owner"
        guard: "myapp.models:User"
      - action: "delete"
        effect: "deny"
        check: true
        capability: "suspended"

Example
-------
::

    loader = RuleLoader()
    loader.load("/etc/myapp/rules.yaml", document)
    await user.can("read", document)
"""
from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, TypeVar

import yaml

from granted.errors import RuleConfigError
from granted.grantable import Grantable
from granted.rules import Capability, Check, Guard, Polarity

logger = logging.getLogger(__name__)

_SUPPORTED_VERSIONS: frozenset[str] = frozenset(["1.0", "1"])

GrantableT = TypeVar("GrantableT", bound=Grantable)


@dataclass(frozen=True)
class RuleSpec:
    """One rule as declared in a rule file, with references resolved."""

    actions: tuple[str, ...]
    polarity: Polarity
    check: Check
    guard: Guard | None = None

    def apply(self, target: Grantable) -> None:
        if self.polarity is Polarity.DENY:
            target.deny(self.actions, self.check, guard=self.guard)
        else:
            target.grant(self.actions, self.check, guard=self.guard)


class RuleLoader:
    """Loads rule files and registers their rules on a target.

    Parameters
    ----------
    resolver:
        Optional mapping from names used in ``check`` / ``guard`` to the
        objects they stand for. Names not found here are imported as
        ``"package.module:attribute"``.
    strict:
        When ``True``, unknown top-level keys are an error.
    """

    _KNOWN_TOP_KEYS: frozenset[str] = frozenset(
        ["version", "rules", "metadata", "description"]
    )
    _KNOWN_RULE_KEYS: frozenset[str] = frozenset(
        ["id", "action", "actions", "effect", "check", "guard", "capability", "description"]
    )

    def __init__(
        self,
        resolver: Mapping[str, Any] | None = None,
        strict: bool = False,
    ) -> None:
        self._resolver: dict[str, Any] = dict(resolver or {})
        self._strict = strict

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, config_path: str | Path, target: GrantableT) -> GrantableT:
        """Register the rules from a YAML file on ``target``.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        RuleConfigError
            If the file cannot be parsed or a rule is invalid.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Rule file not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise RuleConfigError(f"Failed to parse YAML: {exc}", str(config_path)) from exc

        return self._apply(raw, target, str(config_path))

    def load_from_dict(
        self,
        config: dict[str, object],
        target: GrantableT,
        config_path: str | None = None,
    ) -> GrantableT:
        """Register the rules from an already-parsed mapping on ``target``."""
        return self._apply(config, target, config_path)

    def load_from_yaml_string(
        self,
        yaml_string: str,
        target: GrantableT,
        config_path: str | None = None,
    ) -> GrantableT:
        """Register the rules from YAML text on ``target``."""
        try:
            raw = yaml.safe_load(yaml_string) or {}
        except yaml.YAMLError as exc:
            raise RuleConfigError(
                f"Failed to parse YAML string: {exc}", config_path
            ) from exc
        return self._apply(raw, target, config_path)

    def parse(
        self,
        config: dict[str, object],
        config_path: str | None = None,
    ) -> list[RuleSpec]:
        """Validate a rule mapping and resolve it without touching a target."""
        self._validate_structure(config, config_path)

        version = str(config.get("version", "1.0"))
        if version not in _SUPPORTED_VERSIONS:
            raise RuleConfigError(
                f"Unsupported rule file version {version!r}. "
                f"Supported: {sorted(_SUPPORTED_VERSIONS)}.",
                config_path,
            )

        specs: list[RuleSpec] = []
        for index, raw_rule in enumerate(config["rules"]):  # type: ignore[arg-type]
            try:
                specs.append(self._parse_rule(raw_rule))
            except (ValueError, TypeError, LookupError, AttributeError, ImportError) as exc:
                raise RuleConfigError(
                    f"Error in rule at index {index}: {exc}", config_path
                ) from exc
        return specs

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _apply(
        self,
        raw: object,
        target: GrantableT,
        config_path: str | None,
    ) -> GrantableT:
        if not isinstance(target, Grantable):
            raise TypeError(f"{type(target).__name__} is not Grantable")
        specs = self.parse(raw, config_path)  # type: ignore[arg-type]
        for spec in specs:
            spec.apply(target)
        logger.info(
            "Loaded %d rule(s) from %s onto %s",
            len(specs),
            config_path or "<dict>",
            type(target).__name__,
        )
        return target

    def _validate_structure(self, raw: object, config_path: str | None) -> None:
        if not isinstance(raw, dict):
            raise RuleConfigError("Rule file must be a YAML mapping (dict).", config_path)
        if "rules" not in raw:
            raise RuleConfigError("Rule file must contain a 'rules' list.", config_path)
        if not isinstance(raw["rules"], list):
            raise RuleConfigError("Rule file 'rules' must be a list.", config_path)
        if self._strict:
            unknown_keys = set(raw) - self._KNOWN_TOP_KEYS
            if unknown_keys:
                raise RuleConfigError(
                    f"Unknown top-level keys: {sorted(unknown_keys)}. "
                    f"Known keys: {sorted(self._KNOWN_TOP_KEYS)}.",
                    config_path,
                )

    def _parse_rule(self, raw: object) -> RuleSpec:
        if not isinstance(raw, dict):
            raise TypeError(f"rule must be a mapping, got {type(raw).__name__}")
        if self._strict:
            unknown_keys = set(raw) - self._KNOWN_RULE_KEYS
            if unknown_keys:
                raise ValueError(f"unknown rule keys {sorted(unknown_keys)}")

        actions = self._parse_actions(raw)

        effect = str(raw.get("effect", "allow")).lower()
        try:
            polarity = Polarity(effect)
        except ValueError:
            raise ValueError(f"effect must be 'allow' or 'deny', got {effect!r}") from None

        if "check" not in raw:
            raise ValueError("rule is missing 'check'")
        check = self._parse_check(raw["check"])

        if raw.get("guard") is not None and raw.get("capability") is not None:
            raise ValueError("'guard' and 'capability' are mutually exclusive")
        guard: Guard | None = None
        if raw.get("capability") is not None:
            guard = Capability(str(raw["capability"]))
        elif raw.get("guard") is not None:
            guard = self._resolve(str(raw["guard"]))
            if not callable(guard) and not isinstance(guard, tuple):
                raise TypeError(f"guard {raw['guard']!r} is not a class or predicate")

        return RuleSpec(actions=actions, polarity=polarity, check=check, guard=guard)

    def _parse_actions(self, raw: dict[str, object]) -> tuple[str, ...]:
        if "actions" in raw:
            names = raw["actions"]
            if isinstance(names, str):
                names = [names]
            if not isinstance(names, list) or not names:
                raise ValueError("'actions' must be a non-empty list")
            return tuple(str(name) for name in names)
        name = raw.get("action")
        if not name:
            raise ValueError("rule needs 'action' or 'actions'")
        return (str(name),)

    def _parse_check(self, value: object) -> Check:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            check = self._resolve(value)
            if not callable(check) and not isinstance(check, bool):
                raise TypeError(f"check {value!r} is not callable")
            return check
        raise TypeError(f"check must be a boolean or an import path, got {value!r}")

    def _resolve(self, reference: str) -> Any:
        """Look ``reference`` up in the resolver, else import it."""
        if reference in self._resolver:
            return self._resolver[reference]
        module_name, sep, attribute = reference.partition(":")
        if not sep or not module_name or not attribute:
            raise ValueError(
                f"{reference!r} is not a known name or a 'module:attribute' path"
            )
        module = importlib.import_module(module_name)
        obj: Any = module
        for part in attribute.split("."):
            obj = getattr(obj, part)
        return obj
