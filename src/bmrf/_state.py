"""Latent variables of the sampler."""

from typing import NamedTuple

import jax.numpy as jnp
from jaxtyping import Array, Float, Int

from bmrf._prior import PriorSpecification


class ParameterState(NamedTuple):
    """Snapshot of all latent variables at one sweep.

    Attrs:
        beta: effect size of each edge, `Beta[k]`
        gamma: inclusion indicator of each edge, `Gamma[k]` in {0, 1}
        mixing: mixing probability of each edge, `p[k]` in (0, 1)
        tauprior: Laplace rate selected by `gamma`
        tau: shared residual precision
    """

    beta: Float[Array, " edges"]
    gamma: Int[Array, " edges"]
    mixing: Float[Array, " edges"]
    tauprior: Float[Array, " edges"]
    tau: Float[Array, ""]


class ChainState(NamedTuple):
    """Full state carried from one sweep to the next.

    Attrs:
        params: the latent variables
        residuals: `S - S M` for the current effect matrix `M`
        log_step_size: log-scale of the random-walk proposal, per edge
        n_accepted: number of accepted proposals, per edge
        n_proposed: number of proposals, per edge
        n_numerical_failures: number of proposals rejected because
          the acceptance ratio was not finite
    """

    params: ParameterState
    residuals: Float[Array, "points variables"]
    log_step_size: Float[Array, " edges"]
    n_accepted: Int[Array, " edges"]
    n_proposed: Int[Array, " edges"]
    n_numerical_failures: Int[Array, ""]


def initial_parameter_state(prior: PriorSpecification) -> ParameterState:
    """All edges start switched off (`Gamma = 0`) with zero effect.
    The mixing probabilities start at their prior means and
    the precision at the prior mean of `tau`."""
    n_edges = prior.n_edges
    return ParameterState(
        beta=jnp.zeros(n_edges, dtype=float),
        gamma=jnp.zeros(n_edges, dtype=int),
        mixing=prior.mixing_prior_mean(),
        tauprior=jnp.full(n_edges, fill_value=prior.spike_rate, dtype=float),
        tau=jnp.asarray(prior.noise_shape / prior.noise_rate, dtype=float),
    )
