"""Construction of the effect matrix from the edge vector."""

import jax
import jax.numpy as jnp
from jaxtyping import Array, Float, Int


def assemble_effect_matrix(
    beta: Float[Array, " edges"],
    rows: Int[Array, " edges"],
    cols: Int[Array, " edges"],
    n_variables: int,
) -> Float[Array, "variables variables"]:
    """Generates a symmetric matrix with zero diagonal,
    such that `M[rows[k], cols[k]] = M[cols[k], rows[k]] = beta[k]`.

    Args:
        beta: effect of each edge
        rows: first coordinate of each edge
        cols: second coordinate of each edge, `cols[k] != rows[k]`
        n_variables: size of the matrix
    """
    M = jnp.zeros((n_variables, n_variables), dtype=beta.dtype)
    M = M.at[rows, cols].set(beta)
    M = M.at[cols, rows].set(beta)

    diagonal = jnp.diag_indices(n_variables)
    return M.at[diagonal].set(0.0)


assemble_effect_matrix_jit = jax.jit(
    assemble_effect_matrix, static_argnames=("n_variables",)
)
