import jax.numpy as jnp
import numpy as np
import numpy.testing as npt
import pytest

import bmrf._prior as pr
from bmrf import ConfigurationError


def test_hyperparameters_from_prior_edge() -> None:
    prior = pr.PriorSpecification.from_prior_edge(jnp.array([1, 0, 0, 1]))

    npt.assert_allclose(prior.alpha, [30.0, 10.0, 10.0, 30.0])
    npt.assert_allclose(prior.beta, [10.0, 10.0, 10.0, 10.0])
    assert prior.slab_rate == pytest.approx(2.0)
    assert prior.spike_rate == pytest.approx(20.0)
    assert prior.noise_shape == pytest.approx(8.0)
    assert prior.noise_rate == pytest.approx(8.0)
    assert prior.n_edges == 4


def test_prior_means_keep_literal_hyperparameters() -> None:
    """The informed edges have prior mean 0.75 (not 0.8)."""
    prior = pr.PriorSpecification.from_prior_edge(np.array([1, 0]))
    npt.assert_allclose(prior.mixing_prior_mean(), [0.75, 0.5], rtol=1e-6)

    prior = pr.PriorSpecification.from_prior_edge(np.array([1, 0]), informed_alpha=40)
    npt.assert_allclose(prior.mixing_prior_mean(), [0.8, 0.5], rtol=1e-6)


@pytest.mark.parametrize("prior_edge", [[0, 2, 1], [[0, 1]], [0.5, 1.0]])
def test_non_binary_prior_edge_raises(prior_edge) -> None:
    with pytest.raises(ConfigurationError):
        pr.PriorSpecification.from_prior_edge(np.asarray(prior_edge))


@pytest.mark.parametrize("name", ["beta", "slab_rate", "noise_shape"])
def test_non_positive_hyperparameter_raises(name: str) -> None:
    with pytest.raises(ConfigurationError):
        pr.PriorSpecification.from_prior_edge(np.zeros(3), **{name: 0.0})


@pytest.mark.parametrize("rate", [2.0, 20.0])
def test_laplace_logpdf(rate: float) -> None:
    xs = jnp.linspace(-2.0, 2.0, 11)
    desired = np.log(rate / 2) - rate * np.abs(np.asarray(xs))
    npt.assert_allclose(pr.laplace_logpdf(xs, rate), desired, rtol=1e-5, atol=1e-5)
