import jax
import jax.numpy as jnp
import pytest
from jax import random

import bmrf._noise as ns


@pytest.mark.parametrize("prior", [(8.0, 8.0), (3.0, 1.5)])
def test_prior(prior: tuple[float, float], n_samples: int = 20_000) -> None:
    """Without any cells we sample from the prior."""
    shape, rate = prior
    keys = random.split(random.PRNGKey(12), n_samples)

    samples = jax.vmap(
        lambda key: ns.sample_noise_precision(key, 0.0, 0, shape, rate)
    )(keys)

    assert jnp.all(samples > 0)
    assert jnp.mean(samples) == pytest.approx(shape / rate, rel=0.02)
    assert jnp.var(samples) == pytest.approx(shape / rate**2, rel=0.05)


@pytest.mark.parametrize("true_tau", [0.5, 4.0])
def test_infinite_data(true_tau: float, n_cells: int = 200_000) -> None:
    """In the infinite-data limit the posterior concentrates
    around the true precision."""
    key_data, key_sample = random.split(random.PRNGKey(42))
    residuals = random.normal(key_data, shape=(n_cells,)) / jnp.sqrt(true_tau)

    tau = ns.sample_noise_precision(
        key_sample, jnp.sum(jnp.square(residuals)), n_cells
    )
    assert tau == pytest.approx(true_tau, rel=0.02)
