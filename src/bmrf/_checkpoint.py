"""Saving and restoring the state of a chain."""

from pathlib import Path
from typing import NamedTuple, Optional, Union

import jax.numpy as jnp
import numpy as np
import xarray as xr

from bmrf._state import ChainState, ParameterState

_ENGINE = "scipy"


class Checkpoint(NamedTuple):
    """State of a chain after sweep `iteration`.

    Together with the seed and the chain index this is enough to
    continue the chain: the random key of each sweep is derived
    from the sweep index.

    Attrs:
        iteration: number of completed sweeps
        state: the state after this sweep. The residuals may be missing
          (`None`), as they are recomputed from the effects on resume

    Note:
        The streak of the divergence monitor is not part of the checkpoint
        and starts from zero on resume. The draws of a resumed chain are
        identical to an uninterrupted one, but a divergence spanning the
        interruption may be reported later or not at all.
    """

    iteration: int
    state: ChainState


def _to_dataset(checkpoint: Checkpoint, attrs: Optional[dict]) -> xr.Dataset:
    state = checkpoint.state
    params = state.params
    edge = ["edge"]
    variables = {
        "Beta": (edge, np.asarray(params.beta)),
        "Gamma": (edge, np.asarray(params.gamma, dtype=np.int32)),
        "p": (edge, np.asarray(params.mixing)),
        "tauprior": (edge, np.asarray(params.tauprior)),
        "tau": ([], np.asarray(params.tau)),
        "log_step_size": (edge, np.asarray(state.log_step_size)),
        "n_accepted": (edge, np.asarray(state.n_accepted, dtype=np.int32)),
        "n_proposed": (edge, np.asarray(state.n_proposed, dtype=np.int32)),
        "n_numerical_failures": (
            [],
            np.asarray(state.n_numerical_failures, dtype=np.int32),
        ),
    }
    return xr.Dataset(
        data_vars=variables,
        attrs={"iteration": int(checkpoint.iteration)} | (attrs or {}),
    )


def save_checkpoint(
    path: Union[str, Path], checkpoint: Checkpoint, attrs: Optional[dict] = None
) -> None:
    """Saves the checkpoint to a NetCDF file."""
    _to_dataset(checkpoint, attrs).to_netcdf(Path(path), engine=_ENGINE)


def load_checkpoint(path: Union[str, Path]) -> Checkpoint:
    """Loads a checkpoint saved with `save_checkpoint`.
    The residuals are not stored and are set to `None`."""
    with xr.open_dataset(Path(path), engine=_ENGINE) as dataset:
        dataset = dataset.load()

    def get(name: str, dtype) -> jnp.ndarray:
        return jnp.asarray(dataset[name].values, dtype=dtype)

    params = ParameterState(
        beta=get("Beta", float),
        gamma=get("Gamma", int),
        mixing=get("p", float),
        tauprior=get("tauprior", float),
        tau=get("tau", float),
    )
    state = ChainState(
        params=params,
        residuals=None,
        log_step_size=get("log_step_size", float),
        n_accepted=get("n_accepted", int),
        n_proposed=get("n_proposed", int),
        n_numerical_failures=get("n_numerical_failures", int),
    )
    return Checkpoint(iteration=int(dataset.attrs["iteration"]), state=state)
