"""Spike-and-slab prior on the edges.

Each edge `k` has the hierarchical prior

.. math::

   p_k \\sim Beta(\\alpha_k, \\beta_k),
   \\quad \\gamma_k \\sim Bernoulli(p_k),
   \\quad b_k \\sim Laplace(0, \\lambda(\\gamma_k)),

where the Laplace distribution is parametrized by its *rate*
(density :math:`\\lambda/2 \\exp(-\\lambda |b|)`). The slab
(:math:`\\gamma_k=1`) uses the rate 2 and the spike
(:math:`\\gamma_k=0`) the rate 20, concentrating the effect near zero.

Note:
    The prior means of :math:`p_k` implied by the default hyperparameters
    are 30/40 = 0.75 for edges believed to exist and 10/20 = 0.5 otherwise.
    The routine these defaults come from documents 0.8 for the former
    (which corresponds to `informed_alpha=40`). The literal value 30
    is kept and can be overridden.
"""

from typing import NamedTuple, Union

import jax.numpy as jnp
import numpy as np
import numpyro.distributions as dist
from jaxtyping import Array, Float, Int

from bmrf._errors import ConfigurationError


def laplace_logpdf(x: Float[Array, " X"], rate) -> Float[Array, " X"]:
    """Evaluates log-PDF of the Laplace distribution
    with location 0 and rate `rate` at `x`."""
    return dist.Laplace(0.0, scale=jnp.reciprocal(rate)).log_prob(x)


class PriorSpecification(NamedTuple):
    """Hyperparameters of the model.

    Attrs:
        alpha: first shape parameter of the Beta prior on `p[k]`, per edge
        beta: second shape parameter of the Beta prior on `p[k]`, per edge
        slab_rate: Laplace rate used when `Gamma[k] = 1`
        spike_rate: Laplace rate used when `Gamma[k] = 0`
        noise_shape: shape of the Gamma prior on the noise precision `tau`
        noise_rate: rate of the Gamma prior on the noise precision `tau`
    """

    alpha: Float[Array, " edges"]
    beta: Float[Array, " edges"]
    slab_rate: float = 2.0
    spike_rate: float = 20.0
    noise_shape: float = 8.0
    noise_rate: float = 8.0

    @classmethod
    def from_prior_edge(
        cls,
        prior_edge: Union[Int[Array, " edges"], Int[np.ndarray, " edges"]],
        *,
        informed_alpha: float = 30.0,
        baseline_alpha: float = 10.0,
        beta: float = 10.0,
        slab_rate: float = 2.0,
        spike_rate: float = 20.0,
        noise_shape: float = 8.0,
        noise_rate: float = 8.0,
    ) -> "PriorSpecification":
        """Derives the per-edge hyperparameters from the prior knowledge.

        Args:
            prior_edge: binary vector. `prior_edge[k] = 1` encodes
              the belief that edge `k` is present
            informed_alpha: `alpha_k` for edges with `prior_edge[k] = 1`
            baseline_alpha: `alpha_k` for edges with `prior_edge[k] = 0`
            beta: `beta_k`, shared by all edges

        Raises:
            ConfigurationError, if `prior_edge` is not a binary vector
              or some hyperparameter is not strictly positive
        """
        prior_edge = np.asarray(prior_edge)
        if prior_edge.ndim != 1:
            raise ConfigurationError(
                f"Prior edge vector has to be one-dimensional, "
                f"but has shape {prior_edge.shape}."
            )
        if not np.all((prior_edge == 0) | (prior_edge == 1)):
            raise ConfigurationError("Prior edge vector has to contain only 0s and 1s.")

        hyperparameters = {
            "informed_alpha": informed_alpha,
            "baseline_alpha": baseline_alpha,
            "beta": beta,
            "slab_rate": slab_rate,
            "spike_rate": spike_rate,
            "noise_shape": noise_shape,
            "noise_rate": noise_rate,
        }
        for name, value in hyperparameters.items():
            if not value > 0:
                raise ConfigurationError(f"The {name} has to be positive, but is {value}.")

        alpha = np.where(prior_edge == 1, informed_alpha, baseline_alpha)
        return cls(
            alpha=jnp.asarray(alpha, dtype=float),
            beta=jnp.full(prior_edge.shape, fill_value=beta, dtype=float),
            slab_rate=float(slab_rate),
            spike_rate=float(spike_rate),
            noise_shape=float(noise_shape),
            noise_rate=float(noise_rate),
        )

    @property
    def n_edges(self) -> int:
        return self.alpha.shape[0]

    def mixing_prior_mean(self) -> Float[Array, " edges"]:
        """Prior mean of `p[k]`, i.e., `alpha_k / (alpha_k + beta_k)`."""
        return self.alpha / (self.alpha + self.beta)
