"""Conjugate update of the shared residual precision."""

import jax
import jax.numpy as jnp
import jax.random as jrandom
from jaxtyping import Array, Float


@jax.jit
def sample_noise_precision(
    key: jax.Array,
    sum_of_squares: Float[Array, ""],
    n_cells: int,
    prior_shape: float = 8.0,
    prior_rate: float = 8.0,
) -> Float[Array, ""]:
    """Consider the residuals

    .. math:

       e_{rc} \\sim N(0, 1/\\tau)

    with the prior :math:`\\tau \\sim Gamma(a, b)` (shape-rate
    parametrization). The posterior is

    .. math:

       \\tau \\sim Gamma(a + N/2, b + \\sum e_{rc}^2 / 2)

    where `N` is the number of cells.

    Args:
        key: JAX random key
        sum_of_squares: sum of squared residuals over all cells
        n_cells: number of cells. Use 0 (together with `sum_of_squares=0`)
          to sample from the prior
        prior_shape: shape parameter of the Gamma prior
        prior_rate: *rate* parameter of the Gamma prior

    Returns:
        sampled precision, strictly positive
    """
    posterior_shape = prior_shape + 0.5 * n_cells
    posterior_rate = prior_rate + 0.5 * sum_of_squares

    tau = jrandom.gamma(key, posterior_shape) / posterior_rate
    return jnp.maximum(tau, jnp.finfo(tau.dtype).tiny)
