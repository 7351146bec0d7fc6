import jax.numpy as jnp
import numpy as np
import numpy.testing as npt

import bmrf
from bmrf import Checkpoint, ChainState, ParameterState


def _checkpoint() -> Checkpoint:
    params = ParameterState(
        beta=jnp.asarray([0.1, -0.3, 0.0]),
        gamma=jnp.asarray([1, 0, 1]),
        mixing=jnp.asarray([0.7, 0.4, 0.6]),
        tauprior=jnp.asarray([2.0, 20.0, 2.0]),
        tau=jnp.asarray(1.3),
    )
    state = ChainState(
        params=params,
        residuals=jnp.zeros((4, 3)),
        log_step_size=jnp.log(jnp.asarray([0.1, 0.2, 0.05])),
        n_accepted=jnp.asarray([3, 1, 4]),
        n_proposed=jnp.asarray([10, 10, 10]),
        n_numerical_failures=jnp.asarray(2),
    )
    return Checkpoint(iteration=10, state=state)


def test_save_and_load(tmp_path) -> None:
    checkpoint = _checkpoint()
    path = tmp_path / "state.nc"
    bmrf.save_checkpoint(path, checkpoint, attrs={"seed": 195})

    loaded = bmrf.load_checkpoint(path)

    assert loaded.iteration == 10
    assert loaded.state.residuals is None
    for name in ParameterState._fields:
        npt.assert_allclose(
            getattr(loaded.state.params, name), getattr(checkpoint.state.params, name)
        )
    npt.assert_allclose(loaded.state.log_step_size, checkpoint.state.log_step_size)
    npt.assert_array_equal(loaded.state.n_accepted, [3, 1, 4])
    assert int(loaded.state.n_numerical_failures) == 2
    assert np.issubdtype(np.asarray(loaded.state.params.gamma).dtype, np.integer)
