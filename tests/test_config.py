import pytest

from bmrf import ConfigurationError, RunConfig


def test_defaults() -> None:
    config = RunConfig()
    assert config.n_iter == 10_000
    assert config.n_burnin == 5_000
    assert config.n_thin == 10
    assert config.n_chains == 1
    assert config.monitored_params == ("Beta", "Gamma")
    assert config.n_draws == 500


@pytest.mark.parametrize(
    "n_iter,n_burnin,n_thin,expected",
    [(100, 0, 1, 100), (100, 50, 7, 7), (10, 10, 3, 0), (23, 3, 4, 5)],
)
def test_number_of_draws(n_iter: int, n_burnin: int, n_thin: int, expected: int) -> None:
    config = RunConfig(n_iter=n_iter, n_burnin=n_burnin, n_thin=n_thin)
    assert config.n_draws == expected


def test_monitored_params_are_ordered() -> None:
    config = RunConfig(monitored_params={"tau", "Beta", "p"})
    assert config.monitored_params == ("Beta", "p", "tau")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"n_iter": 10, "n_burnin": 20},
        {"n_burnin": -1},
        {"n_thin": 0},
        {"n_chains": 0},
        {"monitored_params": ("Beta", "Sigma")},
        {"monitored_params": ()},
    ],
)
def test_invalid_configuration_raises(kwargs) -> None:
    with pytest.raises(ConfigurationError):
        RunConfig(**kwargs)
