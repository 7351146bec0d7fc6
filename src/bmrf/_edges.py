"""Bijection between linear edge ids and coordinates
of a symmetric matrix with zero diagonal.

Coordinates are 0-based. An edge index of a network with `G` variables
lists `G*(G-1)/2` unordered pairs, covering every entry above the
diagonal exactly once.
"""

from typing import Sequence, Union

import numpy as np
from jaxtyping import Int

from bmrf._errors import ConfigurationError


def number_of_edges(n_variables: int) -> int:
    """Number of possible edges in a network, namely G over 2."""
    return n_variables * (n_variables - 1) // 2


class EdgeIndexMap:
    """Maps the edge id `k` to the pair `(i, j)` with `i < j`
    and vice versa.

    Example:
        For three variables the row-wise listing is
        `[(0, 1), (0, 2), (1, 2)]`, so that `to_coord(1) == (0, 2)`
        and `to_linear(2, 1) == 2`.
    """

    def __init__(
        self,
        coordinates: Union[Sequence[Sequence[int]], Int[np.ndarray, "edges 2"]],
        n_variables: int,
        *,
        one_based: bool = False,
    ) -> None:
        """
        Args:
            coordinates: array of shape `(n_edges, 2)`. Row `k` lists
              the (unordered) pair of variables joined by edge `k`
            n_variables: number of variables `G`
            one_based: whether the coordinates are numbered from 1
              (as in R or BUGS) rather than from 0

        Raises:
            ConfigurationError, if the number of pairs is not `G*(G-1)/2`,
              some pair is out of range, lies on the diagonal or
              is repeated
        """
        if n_variables < 2:
            raise ConfigurationError(
                f"At least two variables are needed, but got {n_variables}."
            )

        coords = np.asarray(coordinates)
        n_edges = number_of_edges(n_variables)

        if coords.size == 0 and n_edges > 0:
            raise ConfigurationError(
                f"Expected {n_edges} edges for {n_variables} variables, got 0."
            )
        if coords.ndim != 2 or coords.shape[1] != 2:
            raise ConfigurationError(
                f"Edge index has to have shape (n_edges, 2), but has {coords.shape}."
            )
        if coords.shape[0] != n_edges:
            raise ConfigurationError(
                f"Expected {n_edges} edges for {n_variables} variables, "
                f"got {coords.shape[0]}."
            )
        if not np.all(np.equal(np.mod(coords, 1), 0)):
            raise ConfigurationError("Edge coordinates have to be integers.")

        coords = coords.astype(int)
        if one_based:
            coords = coords - 1

        if coords.min() < 0 or coords.max() >= n_variables:
            lo, hi = (1, n_variables) if one_based else (0, n_variables - 1)
            raise ConfigurationError(
                f"Edge coordinates have to lie in [{lo}, {hi}]."
            )

        on_diagonal = np.flatnonzero(coords[:, 0] == coords[:, 1])
        if on_diagonal.size:
            raise ConfigurationError(
                f"Edge {on_diagonal[0]} lies on the diagonal. "
                "Self-loops are not allowed."
            )

        rows = np.minimum(coords[:, 0], coords[:, 1])
        cols = np.maximum(coords[:, 0], coords[:, 1])

        self._lookup: dict[tuple[int, int], int] = {}
        for k, pair in enumerate(zip(rows.tolist(), cols.tolist())):
            if pair in self._lookup:
                raise ConfigurationError(
                    f"Edges {self._lookup[pair]} and {k} join the same "
                    f"pair of variables {pair}."
                )
            self._lookup[pair] = k

        self._n_variables = n_variables
        self._rows = rows
        self._cols = cols

    @classmethod
    def upper_triangle(cls, n_variables: int) -> "EdgeIndexMap":
        """Edge index listing the upper off-diagonal entries row by row,
        i.e., `(0, 1), (0, 2), ..., (0, G-1), (1, 2), ...`."""
        rows, cols = np.triu_indices(n_variables, k=1)
        return cls(np.stack([rows, cols], axis=1), n_variables)

    @property
    def n_variables(self) -> int:
        """Number of variables `G`."""
        return self._n_variables

    @property
    def n_edges(self) -> int:
        """Number of edges `G*(G-1)/2`."""
        return self._rows.shape[0]

    @property
    def rows(self) -> Int[np.ndarray, " edges"]:
        """The smaller coordinate of each edge."""
        return self._rows.copy()

    @property
    def cols(self) -> Int[np.ndarray, " edges"]:
        """The larger coordinate of each edge."""
        return self._cols.copy()

    def to_coord(self, k: int) -> tuple[int, int]:
        """Returns the pair `(i, j)`, `i < j`, of edge `k`."""
        if not 0 <= k < self.n_edges:
            raise IndexError(f"Edge id {k} out of range [0, {self.n_edges}).")
        return int(self._rows[k]), int(self._cols[k])

    def to_linear(self, i: int, j: int) -> int:
        """Returns the id of the edge joining `i` and `j`
        (in any order)."""
        pair = (min(i, j), max(i, j))
        if pair not in self._lookup:
            raise KeyError(f"There is no edge between {i} and {j}.")
        return self._lookup[pair]

    def __len__(self) -> int:
        return self.n_edges

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_variables={self.n_variables})"
