"""Containers for the retained samples."""

from typing import Optional, Protocol

import numpy as np
import pandas as pd
import xarray as xr


class DatasetInterface(Protocol):
    """Interface for saving samples.

    One needs to implement:

    append_sample: appends a new sample
    end: executed at the end of sampling
    """

    def append_sample(self, sample: dict, iteration: int) -> None:
        """Adds a new sample, obtained at sweep `iteration`, to the data set.

        Note:
            This function *cannot* modify the `sample`.
        """
        pass

    def end(self) -> None:
        """Executed at the end of the sampling."""
        pass


class SampleChain(DatasetInterface):
    """Ordered sequence of retained posterior draws of a single chain.

    The chain grows while the sampler runs and becomes
    read-only once `end` has been called.
    """

    def __init__(
        self,
        dimensions: dict[str, list[str]],
        sizes: Optional[dict[str, int]] = None,
        *,
        coords: Optional[dict[str, np.ndarray]] = None,
        attrs: Optional[dict] = None,
    ) -> None:
        """
        Args:
            dimensions: named dimensions of each site in the sample,
              e.g., `{"Beta": ["edge"], "tau": []}`
            sizes: length of each named dimension, e.g., `{"edge": 6}`
            coords: optional coordinates, passed to `to_xarray`
            attrs: optional attributes, passed to `to_xarray`
        """
        self._dimensions = {name: list(dims) for name, dims in dimensions.items()}
        self._sizes = dict(sizes or {})
        self._coords = coords or {}
        self.attrs: dict = dict(attrs or {})

        self._samples: list[dict[str, np.ndarray]] = []
        self._iterations: list[int] = []
        self._finished: bool = False

        self.diagnostics: list[str] = []
        self.acceptance_rate: Optional[np.ndarray] = None
        self.stopped_early: bool = False

    @property
    def names(self) -> list[str]:
        """Names of the stored sites."""
        return list(self._dimensions.keys())

    @property
    def iterations(self) -> np.ndarray:
        """Sweep index of each retained draw."""
        return np.asarray(self._iterations, dtype=int)

    @property
    def finished(self) -> bool:
        return self._finished

    def append_sample(self, sample: dict, iteration: int) -> None:
        """Appends a copy of the monitored sites of `sample`.

        Raises:
            RuntimeError, if the chain has already been finished
            KeyError, if the sample has different keys than declared
        """
        if self._finished:
            raise RuntimeError("Cannot append to a finished chain.")
        if set(self._dimensions.keys()) != set(sample.keys()):
            raise KeyError(
                f"Keys mismatch: {self._dimensions.keys()} != {sample.keys()}."
            )
        self._samples.append({name: np.array(sample[name]) for name in self.names})
        self._iterations.append(iteration)

    def add_diagnostic(self, message: str) -> None:
        """Attaches a non-fatal diagnostic message.

        Raises:
            RuntimeError, if the chain has already been finished
        """
        if self._finished:
            raise RuntimeError("Cannot add diagnostics to a finished chain.")
        self.diagnostics.append(message)

    def end(self) -> None:
        """Freezes the chain."""
        self._finished = True

    def __len__(self) -> int:
        return len(self._samples)

    def __getitem__(self, name: str) -> np.ndarray:
        """Stacks the draws of site `name` into an array
        of shape `(n_draws, ...)`."""
        if name not in self._dimensions:
            raise KeyError(f"Site {name} is not stored. Available: {self.names}.")
        if not self._samples:
            shape = tuple(self._sizes[dim] for dim in self._dimensions[name])
            return np.zeros((0,) + shape)
        return np.stack([sample[name] for sample in self._samples])

    def posterior_mean(self, name: str) -> np.ndarray:
        """Average of the retained draws of site `name`."""
        if not len(self):
            raise ValueError("The chain does not contain any draws.")
        return self[name].mean(axis=0)

    def to_xarray(self) -> xr.Dataset:
        """Labelled representation, with the `draw` dimension
        indexed by the sweep number."""
        variables = {
            name: (["draw"] + dims, self[name])
            for name, dims in self._dimensions.items()
        }
        return xr.Dataset(
            data_vars=variables,
            coords={"draw": self.iterations} | self._coords,
            attrs=self.attrs | {"n_draws": len(self)},
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Table of iterations x parameters.

        Vector sites are split into columns `name[k]`,
        e.g., `Beta[0]`, `Beta[1]`, ...
        """
        columns = {}
        for name, dims in self._dimensions.items():
            values = self[name]
            if not dims:
                columns[name] = values
                continue
            n_columns = int(np.prod(values.shape[1:]))
            values = values.reshape(values.shape[0], n_columns)
            for k in range(values.shape[1]):
                columns[f"{name}[{k}]"] = values[:, k]

        index = pd.Index(self.iterations, name="iteration")
        return pd.DataFrame(columns, index=index)
