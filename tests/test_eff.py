"""Tests for Eff construction, evaluation, memoization and reset."""

import copy

import pytest

from effio import Aff, Eff, EffBase, Err, Error, ErrorCode, Ok, PureEff, Thunk


class TestEffConstruction:
    def test_effect_lifts_total_function(self):
        assert Eff.effect(lambda env: env["x"] + 1).run_io({"x": 1}) == Ok(2)

    def test_effect_maybe_can_fail(self):
        error = Error.new("rejected")
        eff = Eff.effect_maybe(lambda env: Err(error) if env < 0 else Ok(env))
        assert eff.run_io(-1) == Err(error)

    def test_success_and_fail_constants(self):
        assert Eff.success(42).run_io(None) == Ok(42)
        assert Eff.fail("bad").run_io(None) == Err(Error.new("bad"))

    def test_construction_requires_a_thunk(self):
        with pytest.raises(TypeError, match="requires a thunk"):
            Eff(None)  # type: ignore[arg-type]

    def test_construction_requires_a_function(self):
        with pytest.raises(TypeError, match="must be callable"):
            Eff.effect(None)  # type: ignore[arg-type]

    def test_building_does_not_run(self, counter):
        eff = Eff.effect(counter.wrap(lambda env: env))
        eff.map(lambda x: x).bind(lambda x: Eff.success(x)).zip(Eff.success(1))
        assert counter.count == 0
        assert not eff.is_evaluated

    def test_fault_in_effect_becomes_failure(self):
        def divide(env):
            return 1 / env

        result = Eff.effect(divide).run_io(0)
        assert result.is_err()
        error = result.unwrap_err()
        assert error.code == ErrorCode.EXCEPTIONAL
        assert isinstance(error.exception, ZeroDivisionError)


class TestEffMemoization:
    def test_runs_once_across_environments(self, counter):
        eff = Eff.effect(counter.wrap(lambda env: f"env={env}"))
        first = eff.run_io("one")
        second = eff.run_io("two")

        assert counter.count == 1
        assert first == Ok("env=one")
        assert second is first

    def test_run_unit_io_participates_in_memoization(self, counter):
        eff = Eff.effect(counter.wrap(lambda env: env))
        assert eff.run_unit_io(1) is None
        assert eff.run_io(2) == Ok(1)
        assert counter.count == 1

    def test_clear_reruns_function(self, counter):
        eff = Eff.effect(counter.wrap(lambda env: env))
        assert eff.run_io(1) == Ok(1)
        eff.clear()
        assert not eff.is_evaluated
        assert eff.run_io(2) == Ok(2)
        assert counter.count == 2

    def test_clear_does_not_affect_derived_effects(self, counter):
        eff = Eff.effect(counter.wrap(lambda env: env))
        derived = eff.map(lambda x: x * 10)
        assert derived.run_io(1) == Ok(10)

        eff.clear()
        assert eff.run_io(2) == Ok(2)
        assert derived.run_io(3) == Ok(10)
        assert counter.count == 2

    def test_effect_derived_before_clear_reads_old_thunk(self, counter):
        eff = Eff.effect(counter.wrap(lambda env: env))
        derived = eff.map(lambda x: x + 1)
        eff.run_io(5)
        eff.clear()

        # The derived effect closes over the evaluated thunk, not the cleared one.
        assert derived.run_io(100) == Ok(6)
        assert counter.count == 1

    def test_copies_share_cache_until_cleared(self, counter):
        eff = Eff.effect(counter.wrap(lambda env: env))
        twin = copy.copy(eff)
        assert twin.thunk is eff.thunk

        assert eff.run_io(1) == Ok(1)
        assert twin.run_io(2) == Ok(1)

        twin.clear()
        assert twin.run_io(3) == Ok(3)
        assert eff.run_io(4) == Ok(1)
        assert counter.count == 2

    def test_derived_effects_share_evaluated_parent(self, counter):
        parent = Eff.effect(counter.wrap(lambda env: env))
        left = parent.map(lambda x: x + 1)
        right = parent.map(lambda x: x * 2)
        assert left.run_io(10) == Ok(11)
        assert right.run_io(99) == Ok(20)
        assert counter.count == 1


class TestFunctorLaws:
    @pytest.mark.parametrize(
        "eff",
        [
            Eff.success(3),
            Eff.fail("nope"),
            Eff.effect(lambda env: env + 1),
        ],
    )
    def test_identity(self, eff):
        env = 4
        assert eff.map(lambda x: x).run_io(env) == eff.run_io(env)

    def test_composition(self):
        f = lambda x: x + 1  # noqa: E731
        g = lambda x: x * 2  # noqa: E731
        env = 7
        lhs = Eff.effect(lambda e: e).map(f).map(g).run_io(env)
        rhs = Eff.effect(lambda e: e).map(lambda x: g(f(x))).run_io(env)
        assert lhs == rhs == Ok(16)

    def test_fault_in_mapper_becomes_failure(self):
        result = Eff.success("abc").map(int).run_io(None)
        assert result.is_err()
        assert isinstance(result.unwrap_err().exception, ValueError)


class TestMonadLaws:
    def test_left_identity(self):
        f = lambda x: Eff.effect(lambda env: x + env)  # noqa: E731
        assert Eff.success(2).bind(f).run_io(10) == f(2).run_io(10)

    def test_right_identity(self):
        eff = Eff.effect(lambda env: env * 3)
        assert eff.bind(Eff.success).run_io(2) == eff.run_io(2)

    def test_associativity(self):
        f = lambda x: Eff.success(x + 1)  # noqa: E731
        g = lambda x: Eff.effect(lambda env: x * env)  # noqa: E731
        m = Eff.success(1)
        lhs = m.bind(f).bind(g).run_io(5)
        rhs = Eff.success(1).bind(lambda x: f(x).bind(g)).run_io(5)
        assert lhs == rhs == Ok(10)


class TestMapFailAndBimap:
    def test_map_fail_only_touches_errors(self):
        wrap = lambda e: Error.new(f"wrapped: {e.message}")  # noqa: E731
        assert Eff.success(1).map_fail(wrap).run_io(None) == Ok(1)
        assert Eff.fail("x").map_fail(wrap).run_io(None) == Err(Error.new("wrapped: x"))

    def test_bimap(self):
        wrap = lambda e: Error.new("mapped", code=9)  # noqa: E731
        assert Eff.success(2).bimap(str, wrap).run_io(None) == Ok("2")
        assert Eff.fail("x").bimap(str, wrap).run_io(None) == Err(Error.new("mapped", code=9))

    def test_select_is_map(self):
        assert Eff.success(2).select(lambda x: x + 1).run_io(None) == Ok(3)


class TestBindAndFlatten:
    def test_bind_short_circuits_on_failure(self, counter):
        error = Error.new("err")
        result = Eff.fail(error).bind(counter.wrap(lambda x: Eff.success(x + 1))).run_io(None)
        assert result == Err(error)
        assert counter.count == 0

    def test_bind_uses_same_environment(self):
        eff = Eff.effect(lambda env: env["a"]).bind(
            lambda a: Eff.effect(lambda env: a + env["b"])
        )
        assert eff.run_io({"a": 1, "b": 2}) == Ok(3)

    def test_bind_accepts_pure_eff(self):
        assert Eff.success(1).bind(lambda x: PureEff.success(x + 1)).run_io("env") == Ok(2)

    def test_bind_does_not_reevaluate_memoized_source(self, counter):
        source = Eff.effect(counter.wrap(lambda env: env))
        source.run_io(1)
        assert source.bind(lambda x: Eff.success(x * 2)).run_io(50) == Ok(2)
        assert counter.count == 1

    def test_binder_returning_non_effect_fails(self):
        result = Eff.success(1).bind(lambda x: x + 1).run_io(None)
        assert result.is_err()
        assert "Expected Eff or PureEff" in result.unwrap_err().message

    def test_flat_map_and_and_then_are_bind(self):
        assert Eff.success(1).flat_map(lambda x: Eff.success(x + 1)).run_io(None) == Ok(2)
        assert Eff.success(1).and_then(lambda x: Eff.success(x + 2)).run_io(None) == Ok(3)

    def test_flatten(self):
        nested = Eff.effect(lambda env: Eff.effect(lambda inner: inner * 2))
        assert nested.flatten().run_io(4) == Ok(8)
        error = Error.new("inner")
        assert Eff.success(Eff.fail(error)).flatten().run_io(None) == Err(error)

    def test_select_many_with_projection(self):
        eff = Eff.success(2).select_many(
            lambda a: Eff.effect(lambda env: a * env),
            lambda a, b: (a, b),
        )
        assert eff.run_io(5) == Ok((2, 10))

    def test_select_many_without_projection(self):
        assert Eff.success(2).select_many(lambda a: Eff.success(a + 1)).run_io(None) == Ok(3)


class TestPureEff:
    def test_pure_effect_takes_no_environment(self, counter):
        eff = PureEff.effect(lambda: counter.wrap(lambda _: 7)())
        assert eff.run_io() == Ok(7)
        assert eff.run_io() == Ok(7)
        assert counter.count == 1

    def test_widen_ignores_environment(self):
        widened = PureEff.success("x").widen()
        assert isinstance(widened, Eff)
        assert widened.run_io({"anything": 1}) == Ok("x")

    def test_lift(self):
        eff = Eff.success(1)
        assert Eff.lift(eff) is eff
        assert Eff.lift(PureEff.success(2)).run_io(None) == Ok(2)
        with pytest.raises(TypeError):
            Eff.lift(42)  # type: ignore[arg-type]

    def test_pure_combinators(self):
        eff = PureEff.success(3).map(lambda x: x + 1).bind(lambda x: PureEff.success(x * 2))
        assert isinstance(eff, PureEff)
        assert eff.run_io() == Ok(8)

    def test_pure_clear(self, counter):
        eff = PureEff.effect(lambda: counter.wrap(lambda _: None)())
        eff.run_io()
        eff.clear()
        eff.run_io()
        assert counter.count == 2

    def test_pure_effect_maybe(self):
        assert PureEff.effect_maybe(lambda: Err(Error.new("no"))).run_io() == Err(Error.new("no"))


class TestThunkAccess:
    def test_thunk_property(self):
        thunk = Thunk.success(1)
        assert Eff(thunk).thunk is thunk

    def test_repr(self):
        assert repr(Eff.success(1)) == "Eff(Thunk(state=success, result=Ok(value=1)))"


class TestEffBaseContract:
    def test_base_is_abstract(self):
        with pytest.raises(TypeError):
            EffBase(Thunk.success(1))  # type: ignore[abstract]

    def test_subclass_must_define_bind(self):
        class Incomplete(EffBase):
            __slots__ = ()

        with pytest.raises(TypeError, match="bind"):
            Incomplete(Thunk.success(1))

    def test_sync_flatten_of_aff_points_at_async_variant(self):
        result = Eff.success(Aff.success(1)).flatten().run_io(None)
        assert "_async" in result.unwrap_err().message
