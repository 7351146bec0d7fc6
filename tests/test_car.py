import jax
import jax.numpy as jnp
import numpy as np
import numpy.testing as npt
import pytest

import bmrf._car as car
from bmrf import EdgeIndexMap, assemble_effect_matrix


def _random_problem(seed: int, n_points: int = 30, G: int = 5):
    rng = np.random.default_rng(seed)
    data = jnp.asarray(rng.normal(size=(n_points, G)))
    edges = EdgeIndexMap.upper_triangle(G)
    beta = jnp.asarray(0.3 * rng.normal(size=edges.n_edges))
    return data, edges, beta


def _matrix(beta, edges):
    return assemble_effect_matrix(
        beta, jnp.asarray(edges.rows), jnp.asarray(edges.cols), edges.n_variables
    )


def test_conditional_means_inner_product() -> None:
    data, edges, beta = _random_problem(1)
    M = _matrix(beta, edges)
    mu = car.conditional_means(data, M)

    r, c = 4, 2
    desired = sum(data[r, t] * M[t, c] for t in range(edges.n_variables))
    assert mu[r, c] == pytest.approx(float(desired), rel=1e-5)


def test_zero_matrix_residuals_are_data() -> None:
    data, edges, _ = _random_problem(2)
    res = car.refresh_residuals(
        data,
        jnp.zeros(edges.n_edges),
        jnp.asarray(edges.rows),
        jnp.asarray(edges.cols),
    )
    npt.assert_allclose(res, data)


@pytest.mark.parametrize("seed", [3, 4])
@pytest.mark.parametrize("k", [0, 5, 9])
def test_incremental_update_matches_refresh(seed: int, k: int) -> None:
    data, edges, beta = _random_problem(seed)
    rows, cols = jnp.asarray(edges.rows), jnp.asarray(edges.cols)
    delta = 0.7

    res = car.refresh_residuals(data, beta, rows, cols)
    i, j = edges.to_coord(k)
    updated = car.update_residuals(data, res, i, j, delta)

    desired = car.refresh_residuals(data, beta.at[k].add(delta), rows, cols)
    npt.assert_allclose(updated, desired, rtol=1e-4, atol=1e-5)


@pytest.mark.parametrize("k", [1, 6])
@pytest.mark.parametrize("tau", [0.5, 2.0])
def test_quadratic_loglikelihood_difference(k: int, tau: float) -> None:
    data, edges, beta = _random_problem(5)
    rows, cols = jnp.asarray(edges.rows), jnp.asarray(edges.cols)
    delta = -0.4

    res = car.refresh_residuals(data, beta, rows, cols)
    i, j = edges.to_coord(k)
    curvature, gradient = car.edge_curvature_and_gradient(
        data, res, car.column_square_norms(data), i, j
    )
    obtained = car.edge_loglikelihood_difference(delta, curvature, gradient, tau)

    ll_old = car.log_likelihood(data, _matrix(beta, edges), tau)
    ll_new = car.log_likelihood(data, _matrix(beta.at[k].add(delta), edges), tau)

    assert obtained == pytest.approx(float(ll_new - ll_old), rel=1e-3, abs=1e-3)


def test_log_likelihood_gaussian() -> None:
    data, edges, beta = _random_problem(6, n_points=4, G=3)
    M = _matrix(beta, edges)
    tau = 1.7

    res = np.asarray(data - data @ M)
    desired = np.sum(
        0.5 * np.log(tau / (2 * np.pi)) - 0.5 * tau * np.square(res)
    )
    assert car.log_likelihood(data, M, tau) == pytest.approx(desired, rel=1e-5)


def test_sum_of_squares_jit() -> None:
    data, _, _ = _random_problem(7)
    assert jax.jit(car.sum_of_squares)(data) == pytest.approx(
        float(np.sum(np.square(np.asarray(data)))), rel=1e-5
    )
