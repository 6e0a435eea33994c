"""
This file implements unit tests for the Monte Carlo simulation module
"""

import logging
import unittest

import numpy as np
import pytest

from skdp.models.search import SearchProblem, solve_wbar
from skdp.models.uncertainty_traps import UncertaintyTrapEcon
from skdp.simulation.monte_carlo import (
    AgentState,
    JobSearchSimulator,
    UncertaintyTrapSimulator,
    job_search_step,
    offer_distribution,
)

from conftest import TEST_SEED

sp = SearchProblem()
w_bar = solve_wbar(sp, tol=1e-8, max_iter=1000).value


def never_accept(pi):
    return np.full_like(pi, 10.0)


class test_job_search_step(unittest.TestCase):
    def setUp(self):
        self.state = AgentState(
            pi=np.full(500, 0.5), employed=np.zeros(500, dtype=bool)
        )

    def test_pure_given_rng(self):
        a = job_search_step(
            sp, self.state, never_accept, "F", 0.0, np.random.default_rng(TEST_SEED)
        )
        b = job_search_step(
            sp, self.state, never_accept, "F", 0.0, np.random.default_rng(TEST_SEED)
        )

        np.testing.assert_array_equal(a.pi, b.pi)
        np.testing.assert_array_equal(self.state.pi, 0.5)
        self.assertFalse(np.any(self.state.employed))

    def test_rejected_offers_update_beliefs(self):
        new = job_search_step(
            sp, self.state, never_accept, "G", 0.0, np.random.default_rng(TEST_SEED)
        )

        self.assertFalse(np.any(new.employed))
        self.assertFalse(np.allclose(new.pi, 0.5))
        self.assertTrue(np.all((new.pi >= sp.pi_min) & (new.pi <= sp.pi_max)))

    def test_acceptance(self):
        new = job_search_step(
            sp,
            self.state,
            lambda pi: np.zeros_like(pi),
            "F",
            0.0,
            np.random.default_rng(TEST_SEED),
        )

        self.assertTrue(np.all(new.employed))
        # Accepted agents stop updating
        np.testing.assert_array_equal(new.pi, 0.5)

    def test_separation_keeps_beliefs(self):
        state = AgentState(pi=np.full(100, 0.3), employed=np.ones(100, dtype=bool))
        new = job_search_step(
            sp,
            state,
            lambda pi: np.zeros_like(pi),
            "F",
            1.0,
            np.random.default_rng(TEST_SEED),
        )

        # Separated agents wait a period before searching
        self.assertFalse(np.any(new.employed))
        np.testing.assert_array_equal(new.pi, 0.3)

    def test_search_on_separation(self):
        state = AgentState(pi=np.full(100, 0.3), employed=np.ones(100, dtype=bool))
        rehired = job_search_step(
            sp,
            state,
            lambda pi: np.zeros_like(pi),
            "F",
            1.0,
            np.random.default_rng(TEST_SEED),
            search_on_separation=True,
        )

        self.assertTrue(np.all(rehired.employed))
        np.testing.assert_array_equal(rehired.pi, 0.3)

    def test_employed_without_separation_stay_employed(self):
        state = AgentState(pi=np.full(100, 0.3), employed=np.ones(100, dtype=bool))
        new = job_search_step(
            sp, state, never_accept, "G", 0.0, np.random.default_rng(TEST_SEED)
        )

        self.assertTrue(np.all(new.employed))
        np.testing.assert_array_equal(new.pi, 0.3)

    def test_bad_regime(self):
        with self.assertRaises(ValueError):
            job_search_step(
                sp, self.state, never_accept, "H", 0.0, np.random.default_rng(0)
            )

    def test_offer_distribution(self):
        dist = offer_distribution(sp, "G", rng=np.random.default_rng(TEST_SEED))

        self.assertEqual((dist.a, dist.b, dist.scale), (3, 1.2, 2.0))


class test_JobSearchSimulator(unittest.TestCase):
    def test_unemployment_falls_to_zero_without_separations(self):
        sim = JobSearchSimulator(
            sp,
            w_bar,
            seed=TEST_SEED,
            agent_count=1000,
            T_sim=150,
            separation_rate=0.0,
            change_date=None,
            initial_regime="G",
            initially_employed=False,
        )
        sim.initialize_sim()
        sim.simulate()
        u = sim.unemployment_rate()

        self.assertEqual(u.shape, (150,))
        self.assertTrue(np.all(np.diff(u) <= 0))
        self.assertLess(u[-1], 0.01)

    def test_agents_learn_true_distribution(self):
        sim = JobSearchSimulator(
            sp,
            never_accept,
            seed=TEST_SEED,
            agent_count=200,
            T_sim=100,
            separation_rate=0.0,
            change_date=None,
            initial_regime="F",
            pi_init=0.5,
            initially_employed=False,
        )
        sim.initialize_sim()
        history = sim.simulate()

        self.assertGreater(np.mean(history["pi"][-1]), 0.9)
        self.assertTrue(np.all(history["pi"] >= sp.pi_min))
        self.assertTrue(np.all(history["pi"] <= sp.pi_max))

    def test_regime_change(self):
        sim = JobSearchSimulator(sp, w_bar, agent_count=10, T_sim=20, change_date=5)

        self.assertEqual(sim.regime(4), "G")
        self.assertEqual(sim.regime(5), "F")
        self.assertEqual(sim.regime(19), "F")

    def test_regime_change_is_logged(self):
        sim = JobSearchSimulator(
            sp, w_bar, seed=TEST_SEED, agent_count=50, T_sim=20, change_date=10
        )
        sim.initialize_sim()

        with self.assertLogs(level=logging.INFO) as logs:
            sim.simulate()

        self.assertTrue(any("switches from G to F" in line for line in logs.output))

    def test_history_and_reproducibility(self):
        def run():
            sim = JobSearchSimulator(
                sp, w_bar, seed=TEST_SEED, agent_count=300, T_sim=60, change_date=30
            )
            sim.initialize_sim()
            return sim.simulate(), sim.unemployment_rate()

        (h1, u1), (h2, u2) = run(), run()

        self.assertEqual(h1["employed"].shape, (60, 300))
        np.testing.assert_array_equal(h1["pi"], h2["pi"])
        np.testing.assert_array_equal(u1, u2)
        self.assertTrue(np.all((u1 >= 0) & (u1 <= 1)))
        # Everyone starts employed, so separations create some unemployment
        self.assertGreater(u1.max(), 0)

    def test_simulate_in_chunks(self):
        sim = JobSearchSimulator(sp, w_bar, seed=TEST_SEED, agent_count=20, T_sim=10)
        sim.initialize_sim()
        sim.simulate(4)

        u = sim.unemployment_rate()
        self.assertEqual(u.shape, (4,))
        self.assertFalse(np.any(np.isnan(u)))

        history = sim.simulate(6)

        self.assertFalse(np.any(np.isnan(history["pi"])))
        with self.assertRaises(ValueError):
            sim.simulate(1)

    def test_separation_timing(self):
        def run(search_on_separation):
            sim = JobSearchSimulator(
                sp,
                lambda pi: np.zeros_like(pi),
                seed=TEST_SEED,
                agent_count=50,
                T_sim=6,
                separation_rate=1.0,
                change_date=None,
                search_on_separation=search_on_separation,
            )
            sim.initialize_sim()
            sim.simulate()
            return sim.unemployment_rate()

        # Everyone loses their job each period and is rehired the next
        np.testing.assert_array_equal(run(False), [1, 0, 1, 0, 1, 0])
        np.testing.assert_array_equal(run(True), np.zeros(6))

    def test_simulate_requires_initialization(self):
        sim = JobSearchSimulator(sp, w_bar, agent_count=10, T_sim=10)

        with self.assertRaises(RuntimeError):
            sim.simulate()

    def test_bad_T_sim(self):
        sim = JobSearchSimulator(sp, w_bar, agent_count=10, T_sim=0)

        with self.assertRaises(ValueError):
            sim.initialize_sim()

    def test_w_bar_array_is_interpolated(self):
        sim = JobSearchSimulator(sp, w_bar, agent_count=10, T_sim=10)

        self.assertAlmostEqual(float(sim.w_bar(sp.pi_grid[3])), w_bar[3])


@pytest.mark.parametrize(
    "kwargs",
    [
        {"separation_rate": -0.1},
        {"separation_rate": 1.5},
        {"initial_regime": "H"},
        {"pi_init": 0.0},
        {"agent_count": 0},
    ],
)
def test_job_search_simulator_validation(kwargs):
    with pytest.raises(ValueError):
        JobSearchSimulator(sp, w_bar, **kwargs)


class test_UncertaintyTrapSimulator(unittest.TestCase):
    def setUp(self):
        self.econ = UncertaintyTrapEcon()

    def test_simulate(self):
        sim = UncertaintyTrapSimulator(self.econ, seed=TEST_SEED, T_sim=300)
        sim.initialize_sim()
        history = sim.simulate()

        self.assertEqual(history["gamma"].shape, (300, 1))
        self.assertTrue(np.all(history["gamma"] > 0))
        M = history["M"][:, 0]
        self.assertTrue(np.all((M >= 0) & (M <= self.econ.num_firms)))
        # Precision never exceeds the bound set by the fundamental's own shocks
        self.assertTrue(np.all(history["gamma"] < 1 / self.econ.sigma_theta**2))

    def test_reproducible(self):
        runs = []
        for _ in range(2):
            sim = UncertaintyTrapSimulator(self.econ, seed=TEST_SEED, T_sim=50)
            sim.initialize_sim()
            runs.append(sim.simulate()["mu"].copy())

        np.testing.assert_array_equal(runs[0], runs[1])

    def test_no_entry_means_decaying_precision(self):
        econ = UncertaintyTrapEcon(c=1e6)
        sim = UncertaintyTrapSimulator(econ, seed=TEST_SEED, T_sim=100)
        sim.initialize_sim()
        history = sim.simulate()

        self.assertTrue(np.all(history["M"] == 0))
        self.assertTrue(np.all(np.diff(history["gamma"][:, 0]) < 0))
