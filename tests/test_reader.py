"""Tests for environment access: ask, asks, ask_key, local, and Env."""

from dataclasses import dataclass

import pytest
from frozendict import frozendict

from effio import (
    Ask,
    AskKey,
    CancellationToken,
    Eff,
    Env,
    ErrorCode,
    HasCancel,
    Local,
    Ok,
    PureEff,
    ask,
    ask_key,
    asks,
    is_cancelled,
    local,
)


@dataclass(frozen=True)
class AppConfig:
    db_url: str
    retries: int = 3


class TestAsk:
    def test_ask_returns_environment(self):
        assert ask().run_io("whole env") == Ok("whole env")
        assert Ask().run_io(1) == Ok(1)

    def test_asks_projects(self):
        assert asks(lambda env: env.retries).run_io(AppConfig("sqlite://")) == Ok(3)


class TestAskKey:
    def test_mapping_lookup(self):
        assert ask_key("db").run_io({"db": "postgres"}) == Ok("postgres")
        assert AskKey("db").run_io(Env.of(db="sqlite")) == Ok("sqlite")

    def test_attribute_lookup(self):
        assert ask_key("db_url").run_io(AppConfig("sqlite://")) == Ok("sqlite://")

    def test_missing_key_is_failure(self):
        result = ask_key("db").run_io({"other": 1})
        assert result.is_err()
        error = result.unwrap_err()
        assert error.code == ErrorCode.MISSING_ENV_KEY
        assert "Environment key not found: 'db'" in error.message

    def test_missing_attribute_is_failure(self):
        result = ask_key("missing").run_io(AppConfig("x"))
        assert result.unwrap_err().code == ErrorCode.MISSING_ENV_KEY


class TestLocal:
    def test_local_runs_against_modified_environment(self):
        inner = ask_key("level")
        eff = local(lambda env: env.with_values(level="debug"), inner)
        assert eff.run_io(Env.of(level="info")) == Ok("debug")

    def test_local_does_not_leak(self):
        env = Env.of(level="info")
        eff = Local(lambda e: e.with_values(level="debug"), ask_key("level")).bind(
            lambda inner: ask_key("level").map(lambda outer: (inner, outer))
        )
        assert eff.run_io(env) == Ok(("debug", "info"))

    def test_local_accepts_pure_eff(self):
        assert local(lambda env: env, PureEff.success(1)).run_io(None) == Ok(1)

    def test_local_requires_callable(self):
        with pytest.raises(TypeError):
            local("not callable", Eff.success(1))  # type: ignore[arg-type]


class TestEnv:
    def test_env_is_an_immutable_mapping(self):
        env = Env.of({"a": 1}, b=2)
        assert isinstance(env.data, frozendict)
        assert dict(env) == {"a": 1, "b": 2}
        assert env["a"] == 1
        assert env.get("missing") is None
        assert len(env) == 2

    def test_with_values_shares_token(self):
        env = Env.of(a=1)
        updated = env.with_values(a=2, c=3)
        assert updated["a"] == 2
        assert env["a"] == 1
        assert updated.cancellation_token is env.cancellation_token

    def test_equality_ignores_token(self):
        assert Env.of(a=1) == Env.of(a=1)

    def test_env_has_cancel_capability(self):
        env = Env.of()
        assert isinstance(env, HasCancel)
        assert not is_cancelled(env)
        env.cancel()
        assert is_cancelled(env)

    def test_plain_values_are_not_cancellable(self):
        assert not is_cancelled({"a": 1})
        assert not is_cancelled(None)

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            Env([1, 2])  # type: ignore[arg-type]

    def test_token(self):
        token = CancellationToken()
        assert not token.is_cancelled
        token.cancel()
        assert token.is_cancelled
        assert repr(token) == "CancellationToken(cancelled=True)"
