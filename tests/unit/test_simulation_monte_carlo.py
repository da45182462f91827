"""
Tests for the parallel Monte Carlo engine.

Tests cover:
- Work partitioning and per-worker random streams
- Accumulator reduction
- Statistics derivation (price, standard error, average terminal price)
- Engine determinism, validation and degenerate cases
"""

import logging
import math
from dataclasses import replace

import numpy as np
import pytest

from mc_option_pricing.options.simulation.gbm import InvalidParameterError, PricingParameters
from mc_option_pricing.options.simulation.monte_carlo import (
    Accumulator,
    MonteCarloEngine,
    SimulationResult,
    compute_result,
    convergence_analysis,
    partition_trials,
    run_simulation,
    simulate_partition,
    spawn_worker_generators,
)

TEST_SEED = 20260218


class TestPartitionTrials:
    """Contiguous, disjoint, exhaustive partitioning."""

    def test_uneven_split(self):
        """Remainder goes to the first workers."""
        assert partition_trials(10, 3) == [(0, 4), (4, 7), (7, 10)]

    def test_even_split(self):
        """Even split."""
        assert partition_trials(8, 4) == [(0, 2), (2, 4), (4, 6), (6, 8)]

    def test_single_worker(self):
        """One worker takes everything."""
        assert partition_trials(7, 1) == [(0, 7)]

    def test_more_workers_than_trials(self):
        """Surplus workers receive empty ranges."""
        assert partition_trials(2, 4) == [(0, 1), (1, 2), (2, 2), (2, 2)]

    @pytest.mark.parametrize("n_trials,n_workers", [(1, 1), (1_000_003, 7), (5_000_000_000, 64)])
    def test_covers_every_trial_once(self, n_trials, n_workers):
        """Ranges tile [0, N) with no gaps or overlaps."""
        ranges = partition_trials(n_trials, n_workers)
        assert len(ranges) == n_workers
        assert ranges[0][0] == 0
        assert ranges[-1][1] == n_trials
        for (_, stop), (start, _) in zip(ranges, ranges[1:]):
            assert stop == start
        sizes = [stop - start for start, stop in ranges]
        assert max(sizes) - min(sizes) <= 1

    def test_invalid_workers(self):
        """Zero workers rejected."""
        with pytest.raises(ValueError, match="n_workers must be > 0"):
            partition_trials(10, 0)

    def test_invalid_trials(self):
        """Negative trials rejected."""
        with pytest.raises(ValueError, match="n_trials must be >= 0"):
            partition_trials(-1, 2)


class TestWorkerGenerators:
    """Per-worker random streams."""

    def test_count(self):
        """One generator per worker."""
        assert len(spawn_worker_generators(1, 5)) == 5

    def test_streams_differ_by_worker(self):
        """Sibling streams are not identical."""
        gens = spawn_worker_generators(123, 3)
        draws = [g.standard_normal(8) for g in gens]
        assert not np.array_equal(draws[0], draws[1])
        assert not np.array_equal(draws[1], draws[2])

    def test_reproducible_from_entropy(self):
        """Same entropy gives the same streams."""
        a = [g.standard_normal(4) for g in spawn_worker_generators(99, 2)]
        b = [g.standard_normal(4) for g in spawn_worker_generators(99, 2)]
        for x, y in zip(a, b):
            np.testing.assert_array_equal(x, y)

    def test_prefix_stable_across_worker_counts(self):
        """Worker i's stream does not depend on how many siblings exist."""
        two = spawn_worker_generators(7, 2)[0].standard_normal(16)
        four = spawn_worker_generators(7, 4)[0].standard_normal(16)
        np.testing.assert_array_equal(two, four)


class TestAccumulator:
    """Running sums and their reduction."""

    def test_from_samples(self):
        """Sums match direct computation."""
        payoffs = np.array([0.0, 2.0, 3.0])
        terminal = np.array([95.0, 102.0, 103.0])
        acc = Accumulator.from_samples(payoffs, terminal)
        assert acc.count == 3
        assert acc.sum_payoff == 5.0
        assert acc.sum_payoff_squared == 13.0
        assert acc.sum_terminal_price == 300.0

    def test_add(self):
        """Addition is field-wise."""
        a = Accumulator(count=2, sum_payoff=1.0, sum_payoff_squared=1.0, sum_terminal_price=200.0)
        b = Accumulator(count=3, sum_payoff=4.0, sum_payoff_squared=10.0, sum_terminal_price=310.0)
        c = a + b
        assert c == Accumulator(count=5, sum_payoff=5.0, sum_payoff_squared=11.0, sum_terminal_price=510.0)

    def test_empty_is_identity(self):
        """Default accumulator is the additive identity."""
        a = Accumulator(count=4, sum_payoff=2.5, sum_payoff_squared=3.0, sum_terminal_price=401.0)
        assert Accumulator() + a == a

    def test_combine_empty_list(self):
        """Combining nothing gives the identity."""
        assert Accumulator.combine([]) == Accumulator()

    def test_add_rejects_other_types(self):
        """Adding a non-accumulator raises TypeError."""
        with pytest.raises(TypeError):
            Accumulator() + 1.0  # type: ignore[operator]


class TestComputeResult:
    """Stage B statistics."""

    def test_price_and_se(self, atm_params):
        """price = df * mean, SE = df * sqrt(plug-in var / N)."""
        payoffs = np.array([0.0, 0.0, 10.0, 20.0])
        terminal = np.array([90.0, 95.0, 110.0, 120.0])
        total = Accumulator.from_samples(payoffs, terminal)

        result = compute_result(atm_params, total)

        df = math.exp(-0.05)
        mean = 7.5
        var = (100.0 + 400.0) / 4 - mean**2
        assert result.price == pytest.approx(df * mean)
        assert result.standard_error == pytest.approx(df * math.sqrt(var / 4))
        assert result.average_terminal_price == pytest.approx(103.75)
        assert result.sample_count == 4
        assert result.discount_factor == pytest.approx(df)

    def test_negative_variance_clamped(self, atm_params):
        """Σx²/N below x̄² (rounding residue) yields SE = 0, not NaN."""
        total = Accumulator(count=2, sum_payoff=2.0, sum_payoff_squared=1.9, sum_terminal_price=200.0)
        result = compute_result(atm_params, total)
        assert result.standard_error == 0.0

    def test_zero_count_rejected(self, atm_params):
        """No trials means no statistics."""
        with pytest.raises(InvalidParameterError, match="cannot compute statistics"):
            compute_result(atm_params, Accumulator())


class TestSimulationResult:
    """Result helpers."""

    def _result(self, price=10.0, se=0.5) -> SimulationResult:
        return SimulationResult(
            price=price,
            standard_error=se,
            average_terminal_price=105.0,
            sample_count=1000,
            discount_factor=0.95,
        )

    def test_confidence_interval(self):
        """Default CI is price ± 1.96 SE."""
        lower, upper = self._result().confidence_interval()
        assert lower == pytest.approx(10.0 - 0.98)
        assert upper == pytest.approx(10.0 + 0.98)

    def test_custom_z(self):
        """Custom z."""
        lower, upper = self._result().confidence_interval(z=3.0)
        assert upper - lower == pytest.approx(3.0)

    def test_ci_width(self):
        """ci_width = 2 * 1.96 * SE."""
        assert self._result().ci_width == pytest.approx(1.96)

    def test_relative_error(self):
        """SE / price."""
        assert self._result().relative_error == pytest.approx(0.05)

    def test_relative_error_zero_price(self):
        """Zero price gives infinite relative error."""
        assert self._result(price=0.0, se=0.0).relative_error == float("inf")

    def test_to_dict(self):
        """Dictionary carries all reported fields."""
        d = self._result().to_dict()
        assert d["price"] == 10.0
        assert d["standard_error"] == 0.5
        assert d["average_terminal_price"] == 105.0
        assert len(d["confidence_interval"]) == 2
        assert d["n_workers"] == 1
        assert d["seed_entropy"] is None


class TestSimulatePartition:
    """Single-worker sampling."""

    def test_chunking_does_not_change_draws(self, atm_params):
        """Chunk boundaries leave the stream and counts unchanged."""
        whole = simulate_partition(atm_params, 10_000, np.random.default_rng(5), chunk_size=10_000)
        chunked = simulate_partition(atm_params, 10_000, np.random.default_rng(5), chunk_size=3_001)
        assert chunked.count == whole.count == 10_000
        assert chunked.sum_payoff == pytest.approx(whole.sum_payoff, rel=1e-12)
        assert chunked.sum_terminal_price == pytest.approx(whole.sum_terminal_price, rel=1e-12)

    def test_zero_trials(self, atm_params):
        """An empty share yields an empty accumulator."""
        assert simulate_partition(atm_params, 0, np.random.default_rng(5), 100) == Accumulator()


class TestEngineValidation:
    """Engine construction and input checks."""

    def test_zero_workers(self):
        with pytest.raises(InvalidParameterError, match="n_workers"):
            MonteCarloEngine(n_workers=0)

    def test_zero_chunk(self):
        with pytest.raises(InvalidParameterError, match="chunk_size"):
            MonteCarloEngine(n_workers=1, chunk_size=0)

    def test_negative_seed(self):
        with pytest.raises(InvalidParameterError, match="seed"):
            MonteCarloEngine(n_workers=1, seed=-5)

    def test_rejects_plain_dict(self):
        """Parameters must be a PricingParameters instance."""
        engine = MonteCarloEngine(n_workers=1, seed=1)
        with pytest.raises(InvalidParameterError, match="expected PricingParameters"):
            engine.run({"spot": 100.0})  # type: ignore[arg-type]

    def test_zero_sample_count_never_reaches_engine(self):
        """sample_count = 0 fails at parameter construction."""
        with pytest.raises(InvalidParameterError):
            PricingParameters(100.0, 100.0, 0.05, 0.2, 1.0, 0)

    def test_default_worker_count(self):
        """Default worker count is at least one."""
        assert MonteCarloEngine().n_workers >= 1


class TestEngineDeterminism:
    """Fixed seed, worker count and chunk size reproduce bit-identical results."""

    @pytest.mark.parametrize("n_workers", [1, 3, 8])
    def test_same_seed_same_result(self, atm_params, n_workers):
        params = replace(atm_params, sample_count=50_000)
        a = run_simulation(params, n_workers=n_workers, seed=TEST_SEED)
        b = run_simulation(params, n_workers=n_workers, seed=TEST_SEED)
        assert a.price == b.price
        assert a.standard_error == b.standard_error
        assert a.average_terminal_price == b.average_terminal_price

    def test_different_seeds_differ(self, atm_params):
        params = replace(atm_params, sample_count=20_000)
        a = run_simulation(params, n_workers=2, seed=1)
        b = run_simulation(params, n_workers=2, seed=2)
        assert a.price != b.price

    def test_seed_entropy_replays(self, atm_params):
        """An unseeded run can be replayed from its recorded entropy."""
        params = replace(atm_params, sample_count=20_000)
        first = run_simulation(params, n_workers=2)
        assert first.seed_entropy is not None
        replay = run_simulation(params, n_workers=2, seed=first.seed_entropy)
        assert replay.price == first.price

    def test_engine_reusable(self, atm_params):
        """One engine prices several parameter sets."""
        engine = MonteCarloEngine(n_workers=2, seed=TEST_SEED)
        a = engine.run(replace(atm_params, sample_count=10_000))
        b = engine.run(replace(atm_params, sample_count=10_000))
        assert a.price == b.price

    def test_single_worker_matches_direct_sampling(self, atm_params):
        """With one worker the engine is plain sequential MC on child stream 0."""
        params = replace(atm_params, sample_count=25_000)
        result = run_simulation(params, n_workers=1, seed=TEST_SEED, chunk_size=25_000)

        rng = spawn_worker_generators(TEST_SEED, 1)[0]
        z = rng.standard_normal(25_000)
        st = params.spot * np.exp(params.drift + params.diffusion * z)
        expected = math.exp(-params.risk_free_rate * params.maturity) * np.mean(
            np.maximum(st - params.strike, 0.0)
        )
        assert result.price == pytest.approx(expected, rel=1e-12)


class TestEngineRuns:
    """Completed runs and degenerate cases."""

    def test_sample_count_honoured(self, atm_params):
        result = run_simulation(replace(atm_params, sample_count=12_345), n_workers=4, seed=3)
        assert result.sample_count == 12_345

    def test_workers_capped_at_sample_count(self, atm_params):
        """More threads than trials: every thread gets at most one trial."""
        result = run_simulation(replace(atm_params, sample_count=3), n_workers=16, seed=3)
        assert result.sample_count == 3
        assert result.n_workers == 3

    def test_single_trial(self, atm_params):
        """N = 1 gives SE = 0."""
        result = run_simulation(replace(atm_params, sample_count=1), n_workers=4, seed=3)
        assert result.sample_count == 1
        assert result.standard_error == 0.0

    def test_zero_volatility(self, zero_vol_params, tolerances):
        """σ = 0: price is the discounted intrinsic value of the forward, SE = 0."""
        p = zero_vol_params
        result = run_simulation(p, n_workers=3, seed=TEST_SEED)
        expected = math.exp(-p.risk_free_rate * p.maturity) * (p.forward - p.strike)

        assert result.price == pytest.approx(expected, rel=tolerances.deterministic)
        assert result.average_terminal_price == pytest.approx(p.forward, rel=tolerances.deterministic)
        assert result.standard_error == pytest.approx(0.0, abs=1e-6)

    def test_far_out_of_the_money(self, atm_params):
        """K far above any reachable S(T): price and SE are exactly 0."""
        params = replace(atm_params, strike=1e9, sample_count=20_000)
        result = run_simulation(params, n_workers=2, seed=TEST_SEED)
        assert result.price == 0.0
        assert result.standard_error == 0.0

    def test_zero_strike(self, atm_params):
        """K = 0: payoff is S(T), price ≈ spot."""
        params = replace(atm_params, strike=0.0, sample_count=100_000)
        result = run_simulation(params, n_workers=2, seed=TEST_SEED)
        assert abs(result.price - params.spot) < 4 * result.standard_error

    def test_price_non_negative(self, atm_params):
        result = run_simulation(replace(atm_params, sample_count=5_000), n_workers=2, seed=11)
        assert result.price >= 0.0
        assert result.standard_error >= 0.0

    def test_logs_at_debug(self, atm_params, caplog):
        """Engine logs its run plan at DEBUG."""
        with caplog.at_level(logging.DEBUG, logger="mc_option_pricing.options.simulation.monte_carlo"):
            run_simulation(replace(atm_params, sample_count=1_000), n_workers=2, seed=1)
        assert any("worker(s)" in rec.message for rec in caplog.records)


class TestConvergenceAnalysis:
    """SE scaling diagnostics."""

    def test_structure(self, atm_params, atm_bs_price):
        out = convergence_analysis(
            atm_params,
            sample_counts=[5_000, 20_000],
            analytical_price=atm_bs_price,
            n_workers=2,
        )
        assert len(out["results"]) == 2
        assert {"sample_count", "price", "standard_error", "absolute_error", "within_ci"} <= set(
            out["results"][0]
        )
        assert math.isfinite(out["se_slope"])

    def test_single_run_slope_nan(self, atm_params):
        out = convergence_analysis(atm_params, sample_counts=[5_000], n_workers=1)
        assert math.isnan(out["se_slope"])

    def test_zero_se_slope_nan(self, zero_vol_params):
        """Deterministic runs have no slope to fit."""
        out = convergence_analysis(
            replace(zero_vol_params, strike=1e9), sample_counts=[100, 400], n_workers=1
        )
        assert math.isnan(out["se_slope"])
