"""Updates of the spike-and-slab variables: mixing probabilities,
inclusion indicators and edge effects.

The mixing probability and the indicator of an edge depend only on its own
effect, so they are drawn for all edges at once. The effects are then
updated one at a time in ascending edge order, as each of them changes
the residuals seen by the next one.

The full conditional of an effect, a Laplace prior times a Gaussian
likelihood term, is not a standard distribution. We sample it with
a random-walk Metropolis-Hastings step, whose proposal scale is tuned
separately for each edge during burn-in.
"""

import math
from typing import NamedTuple

import jax
import jax.numpy as jnp
import jax.random as jrandom
from jaxtyping import Array, Float, Int

import bmrf._car as car
from bmrf._prior import PriorSpecification, laplace_logpdf
from bmrf._state import ChainState, ParameterState

_LOG_STEP_MIN: float = math.log(1e-4)
_LOG_STEP_MAX: float = math.log(10.0)


def sample_mixing(
    key: jax.Array,
    gamma: Int[Array, " edges"],
    alpha: Float[Array, " edges"],
    beta: Float[Array, " edges"],
) -> Float[Array, " edges"]:
    """Samples `p[k] ~ Beta(alpha[k] + Gamma[k], beta[k] + 1 - Gamma[k])`,
    which is the posterior after observing a single Bernoulli
    variable `Gamma[k]`.

    Returns:
        mixing probabilities, clipped to the open interval (0, 1)
    """
    mixing = jrandom.beta(key, alpha + gamma, beta + 1 - gamma)
    eps = jnp.finfo(mixing.dtype).eps
    return jnp.clip(mixing, eps, 1.0 - eps)


def inclusion_probability(
    effects: Float[Array, " edges"],
    mixing: Float[Array, " edges"],
    slab_rate: float,
    spike_rate: float,
) -> Float[Array, " edges"]:
    """Calculates `P(Gamma[k] = 1 | p[k], Beta[k])`, i.e.,

    p * Laplace(Beta; slab) / (p * Laplace(Beta; slab) + (1-p) * Laplace(Beta; spike))
    """
    log_p1 = jnp.log(mixing) + laplace_logpdf(effects, slab_rate)
    log_p0 = jnp.log1p(-mixing) + laplace_logpdf(effects, spike_rate)
    return jax.nn.sigmoid(log_p1 - log_p0)


def sample_indicators(
    key: jax.Array,
    effects: Float[Array, " edges"],
    mixing: Float[Array, " edges"],
    slab_rate: float,
    spike_rate: float,
) -> Int[Array, " edges"]:
    """Samples the inclusion indicators."""
    p1 = inclusion_probability(
        effects=effects, mixing=mixing, slab_rate=slab_rate, spike_rate=spike_rate
    )
    return jnp.asarray(jrandom.bernoulli(key, p=p1), dtype=int)


def prior_rates(
    gamma: Int[Array, " edges"], slab_rate: float, spike_rate: float
) -> Float[Array, " edges"]:
    """Laplace rate of each edge, selected by its indicator."""
    return jnp.asarray(jnp.where(gamma == 1, slab_rate, spike_rate), dtype=float)


class _EffectProposal(NamedTuple):
    """Outcome of a single Metropolis-Hastings step."""

    value: Float[Array, ""]
    accepted: Int[Array, ""]
    failed: Int[Array, ""]
    acceptance_probability: Float[Array, ""]


def _metropolis_step(
    key: jax.Array,
    *,
    value: Float[Array, ""],
    log_step_size: Float[Array, ""],
    rate: Float[Array, ""],
    loglikelihood_difference,
) -> _EffectProposal:
    """Random-walk Metropolis-Hastings step targeting
    `Laplace(0, rate) x exp(loglikelihood)`.

    Args:
        loglikelihood_difference: function mapping the proposed change
          `delta` to the change of the log-likelihood

    Note:
        A proposal with non-finite acceptance ratio is rejected
        and marked as failed.
    """
    key_proposal, key_accept = jrandom.split(key)
    proposal = value + jnp.exp(log_step_size) * jrandom.normal(key_proposal)
    delta = proposal - value

    log_ratio = (
        loglikelihood_difference(delta)
        + laplace_logpdf(proposal, rate)
        - laplace_logpdf(value, rate)
    )
    finite = jnp.isfinite(log_ratio)
    log_u = jnp.log(jrandom.uniform(key_accept))
    accepted = finite & (log_u < log_ratio)

    return _EffectProposal(
        value=jnp.where(accepted, proposal, value),
        accepted=jnp.asarray(accepted, dtype=int),
        failed=jnp.asarray(~finite, dtype=int),
        acceptance_probability=jnp.where(
            finite, jnp.exp(jnp.minimum(log_ratio, 0.0)), 0.0
        ),
    )


def sample_effects(
    key: jax.Array,
    *,
    data: Float[Array, "points variables"],
    square_norms: Float[Array, " variables"],
    rows: Int[Array, " edges"],
    cols: Int[Array, " edges"],
    state: ChainState,
    adapt: bool,
    use_likelihood: bool,
    target_acceptance: float = 0.44,
    adaptation_rate: float = 0.05,
) -> ChainState:
    """Updates `Beta[k]` for `k = 0, 1, ..., n_edges-1` in this order,
    keeping the residuals in sync after every accepted move.

    Args:
        key: JAX random key
        data: standardized observations
        square_norms: squared norms of the columns of `data`
        rows: first coordinate of each edge
        cols: second coordinate of each edge
        state: current state. The Laplace rates `state.params.tauprior`
          should already be updated
        adapt: whether to tune the proposal scales
          (only allowed during burn-in)
        use_likelihood: if False, the data term is dropped
          and the effects are sampled from the prior
        target_acceptance: acceptance probability the proposal scales
          are tuned towards
        adaptation_rate: step of the stochastic approximation
          of the log-scale

    Returns:
        new state. Note that `tau`, `gamma` and `mixing` are not modified
    """
    n_edges = rows.shape[0]
    tau = state.params.tau
    rates = state.params.tauprior

    def body_fun(k: int, carry: ChainState) -> ChainState:
        """Updates the effect of the `k`th edge."""
        i, j = rows[k], cols[k]
        res = carry.residuals

        if use_likelihood:
            curvature, gradient = car.edge_curvature_and_gradient(
                data=data, res=res, square_norms=square_norms, i=i, j=j
            )

            def loglikelihood_difference(delta):
                return car.edge_loglikelihood_difference(
                    delta, curvature=curvature, gradient=gradient, tau=tau
                )

        else:

            def loglikelihood_difference(delta):
                return jnp.zeros_like(delta)

        old_value = carry.params.beta[k]
        step = _metropolis_step(
            jrandom.fold_in(key, k),
            value=old_value,
            log_step_size=carry.log_step_size[k],
            rate=rates[k],
            loglikelihood_difference=loglikelihood_difference,
        )

        # Rejected moves (including failed ones) leave the residuals intact
        delta = jnp.where(step.accepted == 1, step.value - old_value, 0.0)
        res = car.update_residuals(data=data, res=res, i=i, j=j, delta=delta)

        log_step_size = carry.log_step_size
        if adapt:
            new_log_step = log_step_size[k] + adaptation_rate * (
                step.acceptance_probability - target_acceptance
            )
            log_step_size = log_step_size.at[k].set(
                jnp.clip(new_log_step, _LOG_STEP_MIN, _LOG_STEP_MAX)
            )

        return carry._replace(
            params=carry.params._replace(beta=carry.params.beta.at[k].set(step.value)),
            residuals=res,
            log_step_size=log_step_size,
            n_accepted=carry.n_accepted.at[k].add(step.accepted),
            n_proposed=carry.n_proposed.at[k].add(1),
            n_numerical_failures=carry.n_numerical_failures + step.failed,
        )

    return jax.lax.fori_loop(0, n_edges, body_fun, state)


def _update_mixing_and_indicators(
    key: jax.Array,
    params: ParameterState,
    prior: PriorSpecification,
) -> ParameterState:
    key_mixing, key_indicators = jrandom.split(key)
    mixing = sample_mixing(
        key_mixing, gamma=params.gamma, alpha=prior.alpha, beta=prior.beta
    )
    gamma = sample_indicators(
        key_indicators,
        effects=params.beta,
        mixing=mixing,
        slab_rate=prior.slab_rate,
        spike_rate=prior.spike_rate,
    )
    return params._replace(
        mixing=mixing,
        gamma=gamma,
        tauprior=prior_rates(gamma, prior.slab_rate, prior.spike_rate),
    )


def _spike_and_slab_step(
    key: jax.Array,
    state: ChainState,
    *,
    data: Float[Array, "points variables"],
    square_norms: Float[Array, " variables"],
    rows: Int[Array, " edges"],
    cols: Int[Array, " edges"],
    prior: PriorSpecification,
    target_acceptance: float,
    adaptation_rate: float,
    adapt: bool,
    use_likelihood: bool,
) -> ChainState:
    """Samples `p`, `Gamma`, sets `tauprior` and then samples `Beta`
    for every edge.

    Args:
        key: JAX random key
        state: current state with residuals matching `state.params.beta`
        data: standardized observations
        square_norms: squared norms of the columns of `data`
        rows: first coordinate of each edge
        cols: second coordinate of each edge
        prior: hyperparameters
        target_acceptance: see `sample_effects`
        adaptation_rate: see `sample_effects`
        adapt: whether the proposal scales should be tuned
        use_likelihood: whether the data term should be used

    Returns:
        state with new `p`, `Gamma`, `tauprior` and `Beta`
        as well as incrementally updated residuals
    """
    key_indicators, key_effects = jrandom.split(key)
    params = _update_mixing_and_indicators(key_indicators, state.params, prior)

    return sample_effects(
        key_effects,
        data=data,
        square_norms=square_norms,
        rows=rows,
        cols=cols,
        state=state._replace(params=params),
        adapt=adapt,
        use_likelihood=use_likelihood,
        target_acceptance=target_acceptance,
        adaptation_rate=adaptation_rate,
    )


spike_and_slab_step = jax.jit(
    _spike_and_slab_step, static_argnames=("adapt", "use_likelihood")
)
