"""Tests for RuleLoader."""
from __future__ import annotations

import numbers
import pathlib

import pytest

from granted.errors import Denied, NotGranted, RuleConfigError
from granted.evaluator import RuleEvaluator
from granted.grantable import Grantable
from granted.loader import RuleLoader
from granted.rules import Capability, Polarity


class Document(Grantable):
    pass


class Member(Grantable):
    def __init__(self, user_id: int, capabilities: tuple[str, ...] = ()) -> None:
        self.id = user_id
        self.capabilities = set(capabilities)


def is_owner(subject: Member, options: object) -> bool:
    return subject.id == 1


_VALID_CONFIG: dict[str, object] = {
    "version": "1.0",
    "rules": [
        {"action": "read", "effect": "allow", "check": True},
        {"actions": ["write", "delete"], "effect": "allow", "check": "is_owner", "guard": "Member"},
        {"action": "delete", "effect": "deny", "check": True, "capability": "suspended"},
    ],
}

_RESOLVER = {"is_owner": is_owner, "Member": Member}


@pytest.fixture()
def loader() -> RuleLoader:
    return RuleLoader(resolver=_RESOLVER)


@pytest.fixture()
def strict_loader() -> RuleLoader:
    return RuleLoader(resolver=_RESOLVER, strict=True)


# ---------------------------------------------------------------------------
# load_from_dict
# ---------------------------------------------------------------------------


class TestLoadFromDict:
    def test_returns_target(self, loader: RuleLoader) -> None:
        doc = Document()
        assert loader.load_from_dict(_VALID_CONFIG, doc) is doc

    def test_registers_rules(self, loader: RuleLoader) -> None:
        doc = loader.load_from_dict(_VALID_CONFIG, Document())
        registry = doc.rule_registry
        assert registry is not None
        assert registry.actions == ["read", "write", "delete"]
        delete_rules = registry.rules_for("delete")
        assert [r.polarity for r in delete_rules] == [Polarity.ALLOW, Polarity.DENY]
        assert delete_rules[0].check is is_owner
        assert delete_rules[0].guard is Member
        assert delete_rules[1].guard == Capability("suspended")

    @pytest.mark.asyncio
    async def test_loaded_rules_evaluate(self, loader: RuleLoader) -> None:
        doc = loader.load_from_dict(_VALID_CONFIG, Document())
        evaluator = RuleEvaluator()
        assert await evaluator.can(Member(1), "delete", doc) is not None
        with pytest.raises(NotGranted):
            await evaluator.can(Member(2), "delete", doc)
        with pytest.raises(Denied):
            await evaluator.can(Member(1, ("suspended",)), "delete", doc)

    def test_effect_defaults_to_allow(self, loader: RuleLoader) -> None:
        doc = loader.load_from_dict({"rules": [{"action": "a", "check": False}]}, Document())
        assert doc.rule_registry.rules_for("a")[0].polarity is Polarity.ALLOW  # type: ignore[union-attr]

    def test_import_path_guard(self) -> None:
        doc = RuleLoader().load_from_dict(
            {"rules": [{"action": "a", "check": True, "guard": "numbers:Number"}]},
            Document(),
        )
        assert doc.rule_registry.rules_for("a")[0].guard is numbers.Number  # type: ignore[union-attr]

    def test_non_grantable_target(self, loader: RuleLoader) -> None:
        with pytest.raises(TypeError):
            loader.load_from_dict(_VALID_CONFIG, object())  # type: ignore[type-var]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    @pytest.mark.parametrize(
        "config",
        [
            [],
            {},
            {"rules": "nope"},
            {"version": "2", "rules": []},
        ],
    )
    def test_structure(self, loader: RuleLoader, config: object) -> None:
        with pytest.raises(RuleConfigError):
            loader.load_from_dict(config, Document())  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "rule",
        [
            "not-a-mapping",
            {"check": True},
            {"actions": [], "check": True},
            {"action": "a"},
            {"action": "a", "check": True, "effect": "maybe"},
            {"action": "a", "check": 3},
            {"action": "a", "check": "unknown_name"},
            {"action": "a", "check": "no_such_module_xyz:fn"},
            {"action": "a", "check": "numbers:NoSuchThing"},
            {"action": "a", "check": True, "guard": "Member", "capability": "x"},
        ],
    )
    def test_bad_rule_reports_index(self, loader: RuleLoader, rule: object) -> None:
        config = {"rules": [{"action": "ok", "check": True}, rule]}
        with pytest.raises(RuleConfigError) as info:
            loader.load_from_dict(config, Document(), config_path="rules.yaml")
        assert "index 1" in str(info.value)
        assert info.value.config_path == "rules.yaml"

    def test_strict_rejects_unknown_top_keys(self, strict_loader: RuleLoader) -> None:
        with pytest.raises(RuleConfigError):
            strict_loader.load_from_dict({"rules": [], "extra": 1}, Document())

    def test_strict_rejects_unknown_rule_keys(self, strict_loader: RuleLoader) -> None:
        with pytest.raises(RuleConfigError):
            strict_loader.load_from_dict(
                {"rules": [{"action": "a", "check": True, "priority": 1}]}, Document()
            )

    def test_lenient_ignores_unknown_keys(self, loader: RuleLoader) -> None:
        doc = loader.load_from_dict(
            {"rules": [{"action": "a", "check": True, "priority": 1}], "extra": 1},
            Document(),
        )
        assert doc.rule_registry is not None


# ---------------------------------------------------------------------------
# Files and strings
# ---------------------------------------------------------------------------


class TestLoadFiles:
    def test_load_yaml_string(self, loader: RuleLoader) -> None:
        doc = loader.load_from_yaml_string(
            "rules:\n  - action: read\n    effect: deny\n    check: true\n", Document()
        )
        assert doc.rule_registry.rules_for("read")[0].is_deny  # type: ignore[union-attr]

    def test_invalid_yaml_string(self, loader: RuleLoader) -> None:
        with pytest.raises(RuleConfigError):
            loader.load_from_yaml_string("rules: [unclosed", Document())

    def test_load_file(self, loader: RuleLoader, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("rules:\n  - action: read\n    check: true\n", encoding="utf-8")
        doc = loader.load(path, Document())
        assert doc.rule_registry.has_action("read")  # type: ignore[union-attr]

    def test_missing_file(self, loader: RuleLoader, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            loader.load(tmp_path / "missing.yaml", Document())

    def test_bad_file_names_path(self, loader: RuleLoader, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("rules: [unclosed", encoding="utf-8")
        with pytest.raises(RuleConfigError) as info:
            loader.load(path, Document())
        assert info.value.config_path == str(path)
