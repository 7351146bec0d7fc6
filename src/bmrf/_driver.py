"""Gibbs sampler for the CAR model with spike-and-slab prior on the edges.

Each sweep consists of the following stages:
  1. for every edge (in ascending order of the edge id):
     `p[k]`, `Gamma[k]`, `tauprior[k]` and `Beta[k]`
  2. assembling the effect matrix and refreshing the residuals
  3. the residual precision `tau`
"""

import copy
import logging
from typing import Iterable, Optional, Sequence

import jax
import jax.numpy as jnp
import jax.random as jrandom
import numpy as np
from jaxtyping import Array, Float

import bmrf._car as car
from bmrf._checkpoint import Checkpoint
from bmrf._config import validate_monitored
from bmrf._edges import EdgeIndexMap
from bmrf._errors import ConfigurationError
from bmrf._noise import sample_noise_precision
from bmrf._prior import PriorSpecification
from bmrf._spike_slab import spike_and_slab_step
from bmrf._state import ChainState, initial_parameter_state
from bmrf.sampling import (
    AbstractGibbsSampler,
    DatasetInterface,
    SampleChain,
    SamplerPhase,
)

_LOGGER = logging.getLogger(__name__)


class DivergenceMonitor:
    """Detects a chain drifting away: the precision `tau` collapsing
    towards zero or the effects growing without bound
    for `patience` consecutive sweeps."""

    def __init__(
        self,
        *,
        tau_floor: float = 1e-6,
        beta_ceiling: float = 1e3,
        patience: int = 100,
    ) -> None:
        if patience < 1:
            raise ConfigurationError(f"Patience has to be at least 1, is {patience}.")
        self.tau_floor = tau_floor
        self.beta_ceiling = beta_ceiling
        self.patience = patience
        self._streak: int = 0

    def reset(self) -> None:
        """Forgets the sweeps registered so far."""
        self._streak = 0

    def update(self, tau: float, max_abs_beta: float, iteration: int) -> Optional[str]:
        """Registers a sweep.

        Returns:
            a warning message when the divergence has lasted exactly
            `patience` sweeps, None otherwise
        """
        diverging = (
            not np.isfinite(tau)
            or tau < self.tau_floor
            or not np.isfinite(max_abs_beta)
            or max_abs_beta > self.beta_ceiling
        )
        self._streak = self._streak + 1 if diverging else 0

        if self._streak == self.patience:
            return (
                f"Possible divergence at sweep {iteration}: for {self.patience} "
                f"consecutive sweeps tau < {self.tau_floor} or "
                f"max |Beta| > {self.beta_ceiling} "
                f"(last tau={tau:.3g}, max |Beta|={max_abs_beta:.3g})."
            )
        return None


class CARSpikeAndSlabSampler(AbstractGibbsSampler):
    """A Gibbs sampler learning a partial correlation network
    from standardized data using the conditional autoregressive
    likelihood and the spike-and-slab Laplace prior on the edges.

    The retained draws are stored in `chain`, as well as in any
    additional data sets provided.
    """

    def __init__(
        self,
        datasets: Sequence[DatasetInterface] = (),
        *,
        # Data and the model
        data: Float[Array, "points variables"],
        edges: EdgeIndexMap,
        prior: PriorSpecification,
        use_likelihood: bool = True,
        # Gibbs sampling
        n_iter: int = 10_000,
        n_burnin: int = 5_000,
        n_thin: int = 10,
        monitored_params: Iterable[str] = ("Beta", "Gamma"),
        seed: int = 195,
        chain: int = 0,
        verbose: bool = False,
        # Proposal tuning
        initial_step_size: float = 0.1,
        target_acceptance: float = 0.44,
        adaptation_rate: float = 0.05,
        # Diagnostics
        divergence_monitor: Optional[DivergenceMonitor] = None,
    ) -> None:
        """
        Args:
            datasets: additional data sets in which the samples are stored
            data: standardized observations, shape (n_points, n_variables)
            edges: edge index of the network
            prior: hyperparameters, one entry per edge
            use_likelihood: if False, the data term is ignored
              and the sampler explores the prior
            n_iter: total number of sweeps
            n_burnin: number of discarded sweeps, during which
              the proposal scales are tuned
            n_thin: thinning
            monitored_params: parameters to be stored,
              out of `Beta`, `Gamma`, `p` and `tau`
            seed: random seed, shared by the chains of one run
            chain: index of the chain, selecting its random stream
            verbose: whether the sampler should print out the sampling status
            initial_step_size: initial scale of the random-walk proposals
            target_acceptance: acceptance probability targeted during burn-in
            adaptation_rate: step of the proposal scale adaptation
            divergence_monitor: detector of diverging chains. The sampler
              works on its own copy, so one monitor can configure many chains

        Raises:
            ConfigurationError, if the inputs are not compatible
        """
        self._monitored = validate_monitored(monitored_params)

        if prior.n_edges != edges.n_edges:
            raise ConfigurationError(
                f"Prior describes {prior.n_edges} edges, "
                f"but the edge index has {edges.n_edges}."
            )
        data = jnp.asarray(data, dtype=float)
        if data.ndim != 2 or data.shape[1] != edges.n_variables:
            raise ConfigurationError(
                f"Data of shape {data.shape} does not match "
                f"{edges.n_variables} variables."
            )
        if initial_step_size <= 0:
            raise ConfigurationError(
                f"The initial step size has to be positive, is {initial_step_size}."
            )
        if not 0 < target_acceptance < 1:
            raise ConfigurationError(
                f"The target acceptance has to be in (0, 1), is {target_acceptance}."
            )
        if adaptation_rate < 0:
            raise ConfigurationError(
                f"The adaptation rate cannot be negative, is {adaptation_rate}."
            )

        self.chain = SampleChain(
            {name: self.dimensions()[name] for name in self._monitored},
            sizes={"edge": edges.n_edges},
            coords={
                "edge": np.arange(edges.n_edges),
                "row": ("edge", edges.rows),
                "col": ("edge", edges.cols),
            },
            attrs={
                "chain": chain,
                "seed": seed,
                "n_iter": n_iter,
                "n_burnin": n_burnin,
                "n_thin": n_thin,
            },
        )
        super().__init__(
            [self.chain] + list(datasets),
            n_iter=n_iter,
            n_burnin=n_burnin,
            n_thin=n_thin,
            verbose=verbose,
        )

        self._key = jrandom.fold_in(jrandom.PRNGKey(seed), chain)

        self._data = data
        self._square_norms = car.column_square_norms(data)
        self._edges = edges
        self._rows = jnp.asarray(edges.rows)
        self._cols = jnp.asarray(edges.cols)
        self._prior = prior
        self._use_likelihood = use_likelihood
        self._n_cells = data.shape[0] * data.shape[1] if use_likelihood else 0

        self._initial_step_size = initial_step_size
        self._target_acceptance = target_acceptance
        self._adaptation_rate = adaptation_rate

        # Each sampler tracks its own divergence streak
        self._monitor = (
            copy.copy(divergence_monitor)
            if divergence_monitor is not None
            else DivergenceMonitor()
        )
        self._n_failures_seen: int = 0

    @classmethod
    def dimensions(cls) -> dict:
        """The sites in each sample with annotated dimensions."""
        return {
            "Beta": ["edge"],
            "Gamma": ["edge"],
            "p": ["edge"],
            "tau": [],  # Float, no named dimensions
        }

    @property
    def monitored_params(self) -> tuple[str, ...]:
        return self._monitored

    def _refresh(self, state: ChainState) -> ChainState:
        """Assembles the effect matrix and recomputes the residuals."""
        residuals = car.refresh_residuals(
            self._data, state.params.beta, self._rows, self._cols
        )
        return state._replace(residuals=residuals)

    def initialise(self) -> ChainState:
        """Initialises the sample: `Beta = 0` and `Gamma = 0` for all edges."""
        n_edges = self._edges.n_edges
        state = ChainState(
            params=initial_parameter_state(self._prior),
            residuals=None,
            log_step_size=jnp.full(
                n_edges, fill_value=np.log(self._initial_step_size), dtype=float
            ),
            n_accepted=jnp.zeros(n_edges, dtype=int),
            n_proposed=jnp.zeros(n_edges, dtype=int),
            n_numerical_failures=jnp.asarray(0, dtype=int),
        )
        return self._refresh(state)

    def new_sample(self, state: ChainState, iteration: int) -> ChainState:
        """A full sweep."""
        key = jrandom.fold_in(self._key, iteration)
        key_edges, key_noise = jrandom.split(key)

        state = spike_and_slab_step(
            key_edges,
            state,
            data=self._data,
            square_norms=self._square_norms,
            rows=self._rows,
            cols=self._cols,
            prior=self._prior,
            target_acceptance=self._target_acceptance,
            adaptation_rate=self._adaptation_rate,
            adapt=self.phase is SamplerPhase.BURNING_IN,
            use_likelihood=self._use_likelihood,
        )
        state = self._refresh(state)

        sse = car.sum_of_squares(state.residuals) if self._use_likelihood else 0.0
        tau = sample_noise_precision(
            key_noise,
            sse,
            self._n_cells,
            self._prior.noise_shape,
            self._prior.noise_rate,
        )
        return state._replace(params=state.params._replace(tau=tau))

    def summarise(self, state: ChainState) -> dict:
        """Monitored parameters as NumPy arrays."""
        params = state.params
        sites = {
            "Beta": params.beta,
            "Gamma": params.gamma,
            "p": params.mixing,
            "tau": params.tau,
        }
        return {name: np.asarray(sites[name]) for name in self._monitored}

    def _warn(self, message: str) -> None:
        _LOGGER.warning(message)
        self.chain.add_diagnostic(message)

    def inspect(self, state: ChainState, iteration: int) -> None:
        """Reports rejected proposals with non-finite acceptance
        ratios and possible divergence."""
        n_failures = int(state.n_numerical_failures)
        if n_failures > self._n_failures_seen:
            self._warn(
                f"Sweep {iteration}: {n_failures - self._n_failures_seen} "
                "proposal(s) rejected due to non-finite acceptance ratio."
            )
            self._n_failures_seen = n_failures

        message = self._monitor.update(
            tau=float(state.params.tau),
            max_abs_beta=float(jnp.max(jnp.abs(state.params.beta))),
            iteration=iteration,
        )
        if message is not None:
            self._warn(message)

    def checkpoint(self) -> Checkpoint:
        """Current state, which can be passed to `run` to continue the chain.

        Raises:
            RuntimeError, if the sampler has not been run yet
        """
        if self.state is None:
            raise RuntimeError("The sampler has not been run yet.")
        return Checkpoint(iteration=self.iteration, state=self.state)

    def run(self, start: Optional[Checkpoint] = None) -> SampleChain:
        """Runs the chain, optionally continuing from a checkpoint.

        Returns:
            the chain with retained draws. If the run was stopped
            with `request_stop`, the draws collected so far
        """
        self._monitor.reset()
        if start is None:
            super().run()
            return self.chain

        if start.state.params.beta.shape != (self._edges.n_edges,):
            raise ConfigurationError(
                f"Checkpoint has {start.state.params.beta.shape[0]} edges, "
                f"expected {self._edges.n_edges}."
            )
        if not 0 <= start.iteration <= self.n_iter:
            raise ConfigurationError(
                f"Checkpoint after sweep {start.iteration} cannot be continued "
                f"in a run of {self.n_iter} sweeps."
            )
        self._n_failures_seen = int(start.state.n_numerical_failures)
        super().run(start=(start.iteration, self._refresh(start.state)))
        return self.chain

    def _end_run(self) -> None:
        if self.state is not None:
            n_proposed = np.maximum(np.asarray(self.state.n_proposed), 1)
            self.chain.acceptance_rate = np.asarray(self.state.n_accepted) / n_proposed
            _LOGGER.info(
                "Mean acceptance rate of the effect proposals: "
                f"{self.chain.acceptance_rate.mean():.2f}"
            )
        self.chain.stopped_early = self.iteration < self.n_iter
        super()._end_run()
