import jax.numpy as jnp
import numpy as np
import numpy.testing as npt
import pytest

import bmrf._assemble as asm
from bmrf import EdgeIndexMap


def test_three_variables() -> None:
    desired = jnp.array(
        [
            [0, 2, 3],
            [2, 0, 7],
            [3, 7, 0],
        ],
        dtype=float,
    )
    edges = EdgeIndexMap.upper_triangle(3)
    obtained = asm.assemble_effect_matrix(
        beta=jnp.array([2, 3, 7], dtype=float),
        rows=jnp.asarray(edges.rows),
        cols=jnp.asarray(edges.cols),
        n_variables=3,
    )
    npt.assert_allclose(desired, obtained)


@pytest.mark.parametrize("G", [2, 4, 7])
def test_symmetric_with_zero_diagonal(G: int) -> None:
    # A non-standard order of the edges
    rng = np.random.default_rng(G)
    rows, cols = np.triu_indices(G, k=1)
    permutation = rng.permutation(rows.shape[0])
    coordinates = np.stack([cols[permutation], rows[permutation]], axis=1)
    edges = EdgeIndexMap(coordinates, G)

    beta = jnp.asarray(rng.normal(size=edges.n_edges))
    M = asm.assemble_effect_matrix_jit(
        beta, jnp.asarray(edges.rows), jnp.asarray(edges.cols), n_variables=G
    )
    assert M.shape == (G, G)

    npt.assert_array_equal(M, M.T)
    npt.assert_array_equal(jnp.diag(M), jnp.zeros(G))
    for k in range(edges.n_edges):
        i, j = edges.to_coord(k)
        assert M[i, j] == beta[k]


def test_two_variables_one_free_parameter() -> None:
    M = asm.assemble_effect_matrix(
        jnp.array([0.3]), jnp.array([0]), jnp.array([1]), n_variables=2
    )
    npt.assert_allclose(M, jnp.array([[0.0, 0.3], [0.3, 0.0]]))
