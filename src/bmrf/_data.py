"""Preparation of the observation matrix."""

import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Float

from bmrf._errors import ConfigurationError, DataError


def _as_matrix(dataset) -> Float[np.ndarray, "points variables"]:
    data = np.asarray(dataset, dtype=float)
    if data.ndim != 2:
        raise DataError(
            f"Data has to have shape (n_points, n_variables), but has {data.shape}."
        )
    if data.shape[0] < 2:
        raise DataError(f"At least two observations are needed, got {data.shape[0]}.")
    if not np.all(np.isfinite(data)):
        raise DataError("Data contains non-finite values.")
    return data


def standardize(dataset) -> Float[Array, "points variables"]:
    """Centers each column and scales it by its sample
    standard deviation (with `n - 1` in the denominator).

    Raises:
        DataError, if the data are not a finite matrix with at least
          two rows, or some column has zero variance
    """
    data = _as_matrix(dataset)

    std = data.std(axis=0, ddof=1)
    constant = np.flatnonzero(std == 0)
    if constant.size:
        raise DataError(
            f"Columns {constant.tolist()} have zero variance "
            "and cannot be standardized."
        )

    return jnp.asarray((data - data.mean(axis=0)) / std)


def validate_observations(dataset, n_variables: int) -> Float[Array, "points variables"]:
    """Checks that already standardized observations can be used
    with a network of `n_variables` variables.

    Raises:
        DataError, if the data are malformed
        ConfigurationError, if the number of columns does not match `n_variables`
    """
    data = _as_matrix(dataset)
    if data.shape[1] != n_variables:
        raise ConfigurationError(
            f"Data has {data.shape[1]} variables, "
            f"but the edge index describes {n_variables}."
        )
    return jnp.asarray(data)
