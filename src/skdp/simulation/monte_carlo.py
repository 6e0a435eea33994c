"""
Functions to support Monte Carlo simulation of models.
"""

import logging
from typing import Callable, NamedTuple, Optional

import numpy as np

from skdp.distributions import Bernoulli, Beta, Normal
from skdp.interpolation import LinearInterp
from skdp.models.search import SearchProblem
from skdp.models.uncertainty_traps import UncertaintyTrapEcon

REGIMES = ("F", "G")


class Simulator:
    """
    Base class for Monte Carlo simulation engines.

    Provides common functionality for simulation including:
    - RNG management and seeding
    - History management
    - Simulation loop structure

    Subclasses list the tracked variables in `state_vars`, set `vars_now`
    in `sim_birth` and advance it in `sim_one_period`.

    Parameters
    ----------
    seed : int
        A seed for this instance's random number generator
    agent_count : int
        The number of agents to simulate
    T_sim : int
        The number of periods to simulate
    """

    state_vars = []

    def __init__(self, seed=0, agent_count=1, T_sim=10):
        if agent_count < 1:
            raise ValueError(f"agent_count must be >= 1, got {agent_count}")

        self.seed = seed
        self.agent_count = agent_count
        self.T_sim = T_sim

        self.vars_now = {v: None for v in self.state_vars}
        self.history = {}

        self.reset_rng()

    def reset_rng(self):
        """
        Reset the random number generator for this simulator.
        """
        self.RNG = np.random.default_rng(self.seed)

    def initialize_sim(self):
        """
        Prepares for a new simulation. Resets the internal random number generator,
        makes initial states for all agents, clears histories of tracked variables.
        """
        if self.T_sim <= 0:
            raise ValueError(
                "T_sim represents the number of periods to simulate "
                "and must be a positive number."
            )

        self.reset_rng()
        self.t_sim = 0
        self.sim_birth()
        self.clear_history()
        return None

    def sim_birth(self):
        raise NotImplementedError

    def sim_one_period(self):
        raise NotImplementedError

    def simulate(self, sim_periods=None):
        """
        Simulates for a given number of periods.
        Defaults to self.T_sim if no input.

        Parameters
        ----------
        sim_periods : int, optional
            Number of periods to simulate.

        Returns
        -------
        history : dict
            The history tracked during the simulation.
        """
        if not hasattr(self, "t_sim"):
            raise RuntimeError(
                "Simulation variables were not initialized before calling simulate(). "
                "Call initialize_sim() first."
            )
        if sim_periods is not None and self.T_sim - self.t_sim < sim_periods:
            raise ValueError(
                "sim_periods must be <= the number of periods left in T_sim. "
                "Increase T_sim and call initialize_sim() again."
            )

        if sim_periods is None:
            sim_periods = self.T_sim - self.t_sim

        for _ in range(sim_periods):
            self.sim_one_period()

            for var_name in self.state_vars:
                self.history[var_name][self.t_sim, :] = self.vars_now[var_name]

            self.t_sim += 1

        return self.history

    def clear_history(self):
        """Clears the histories."""
        for var_name in self.state_vars:
            self.history[var_name] = np.empty((self.T_sim, self.agent_count))
            self.history[var_name].fill(np.nan)


class AgentState(NamedTuple):
    """
    Beliefs and employment status of a population of job searchers, one
    entry per agent. Transitions build a new record instead of mutating.
    """

    pi: np.ndarray
    employed: np.ndarray


def offer_distribution(sp: SearchProblem, regime: str, rng=None) -> Beta:
    """The offer distribution of `regime`, drawing with `rng`."""
    if regime not in REGIMES:
        raise ValueError(f"regime must be one of {REGIMES}, got {regime!r}")
    dist = sp.F if regime == "F" else sp.G
    return Beta(dist.a, dist.b, scale=dist.scale, rng=rng)


def job_search_step(
    sp: SearchProblem,
    state: AgentState,
    w_bar: Callable,
    regime: str,
    separation_rate: float,
    rng: np.random.Generator,
    search_on_separation: bool = False,
) -> AgentState:
    """
    Advance every agent by one period.

    Employed agents lose their job with probability `separation_rate` and
    keep their belief. Agents who started the period unemployed draw an
    offer from the true distribution `regime` and accept it if it is at
    least `w_bar(pi)`; otherwise pi is updated by Bayes' rule. Newly
    separated agents start searching next period unless
    `search_on_separation` is set.

    Parameters
    ----------
    sp : SearchProblem
    state : AgentState
    w_bar : Callable
        Reservation wage as a function of the belief.
    regime : str
        "F" or "G", the distribution that offers are actually drawn from.
    separation_rate : float
        Per-period job destruction probability.
    rng : np.random.Generator
    search_on_separation : bool
        If True, agents who lose their job also search in the same period.

    Returns
    -------
    AgentState
    """
    n = state.pi.shape[0]

    separated = state.employed & (Bernoulli(separation_rate, rng=rng).draw(n) == 1)
    employed = state.employed & ~separated

    w = offer_distribution(sp, regime, rng=rng).draw(n)

    searching = ~employed if search_on_separation else ~state.employed
    accept = searching & (w >= w_bar(state.pi))
    pi = np.where(searching & ~accept, sp.q(w, state.pi), state.pi)

    return AgentState(pi=pi, employed=employed | accept)


class JobSearchSimulator(Simulator):
    """
    Simulates a population of job searchers who learn about the offer
    distribution, with a scripted switch of the true distribution.

    Parameters
    ----------
    sp : SearchProblem
    w_bar : np.array or Callable
        Reservation wage, either on sp.pi_grid or as a function of pi.
    seed : int
        A seed for this instance's random number generator
    agent_count : int
        The number of agents to simulate
    T_sim : int
        The number of periods to simulate
    separation_rate : float
        Per-period probability that an employed agent loses their job.
    change_date : int or None
        Period at which the true distribution switches from
        `initial_regime` to `final_regime`. None keeps `initial_regime`.
    initial_regime, final_regime : str
        "F" or "G".
    pi_init : float
        Initial belief of every agent.
    initially_employed : bool
        Whether agents start out employed.
    search_on_separation : bool
        Whether agents who lose their job search in the same period.
    """

    state_vars = ["pi", "employed"]

    def __init__(
        self,
        sp: SearchProblem,
        w_bar,
        seed=0,
        agent_count=5000,
        T_sim=600,
        separation_rate=0.025,
        change_date: Optional[int] = 200,
        initial_regime="G",
        final_regime="F",
        pi_init=1e-3,
        initially_employed=True,
        search_on_separation=False,
    ):
        if not 0 <= separation_rate <= 1:
            raise ValueError(f"separation_rate must be in [0, 1], got {separation_rate}")
        for regime in (initial_regime, final_regime):
            if regime not in REGIMES:
                raise ValueError(f"regime must be one of {REGIMES}, got {regime!r}")
        if not sp.pi_min <= pi_init <= sp.pi_max:
            raise ValueError(
                f"pi_init must be in [{sp.pi_min}, {sp.pi_max}], got {pi_init}"
            )

        self.sp = sp
        self.w_bar = w_bar if callable(w_bar) else LinearInterp(sp.pi_grid, w_bar)
        self.separation_rate = separation_rate
        self.change_date = change_date
        self.initial_regime = initial_regime
        self.final_regime = final_regime
        self.pi_init = pi_init
        self.initially_employed = initially_employed
        self.search_on_separation = search_on_separation

        super().__init__(seed=seed, agent_count=agent_count, T_sim=T_sim)

    def regime(self, t):
        """True offer distribution in period t."""
        if self.change_date is None or t < self.change_date:
            return self.initial_regime
        return self.final_regime

    def sim_birth(self):
        self.state = AgentState(
            pi=np.full(self.agent_count, self.pi_init),
            employed=np.full(self.agent_count, self.initially_employed, dtype=bool),
        )
        self.vars_now = self.state._asdict()

    def sim_one_period(self):
        if self.t_sim == self.change_date:
            logging.info(
                f"Period {self.t_sim}: offer distribution switches from "
                f"{self.initial_regime} to {self.final_regime}"
            )

        self.state = job_search_step(
            self.sp,
            self.state,
            self.w_bar,
            self.regime(self.t_sim),
            self.separation_rate,
            self.RNG,
            search_on_separation=self.search_on_separation,
        )
        self.vars_now = self.state._asdict()

    def unemployment_rate(self):
        """Fraction of agents unemployed in each period simulated so far."""
        return 1 - np.mean(self.history["employed"][: self.t_sim], axis=1)


class UncertaintyTrapSimulator(Simulator):
    """
    Simulates the aggregate path of the uncertainty traps economy. Histories
    have one column.

    Parameters
    ----------
    econ : UncertaintyTrapEcon
    seed : int
        A seed for this instance's random number generator
    T_sim : int
        The number of periods to simulate
    """

    state_vars = ["mu", "gamma", "theta", "M"]

    def __init__(self, econ: UncertaintyTrapEcon, seed=0, T_sim=2000):
        self.econ = econ
        super().__init__(seed=seed, agent_count=1, T_sim=T_sim)

    def sim_birth(self):
        self.state = self.econ.initial_state
        self.vars_now = {**self.state._asdict(), "M": np.nan}

    def sim_one_period(self):
        X, M = self.econ.gen_aggregates(self.state, self.RNG)
        state = self.econ.update_beliefs(self.state, X, M)
        w = Normal(rng=self.RNG).draw(1)[0]
        self.state = self.econ.update_theta(state, w)
        self.vars_now = {**self.state._asdict(), "M": M}
