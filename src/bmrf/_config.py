"""Run configuration."""

import dataclasses
from typing import Iterable

from bmrf._errors import ConfigurationError

MONITORABLE_PARAMETERS: tuple[str, ...] = ("Beta", "Gamma", "p", "tau")


def validate_monitored(monitored_params: Iterable[str]) -> tuple[str, ...]:
    """Checks the requested parameter names and returns them
    in the canonical order `Beta, Gamma, p, tau`.

    Raises:
        ConfigurationError, if a name is not known or nothing is requested
    """
    if isinstance(monitored_params, str):
        monitored_params = (monitored_params,)
    requested = set(monitored_params)

    unknown = requested - set(MONITORABLE_PARAMETERS)
    if unknown:
        raise ConfigurationError(
            f"Cannot monitor {sorted(unknown)}. "
            f"Available parameters: {MONITORABLE_PARAMETERS}."
        )
    if not requested:
        raise ConfigurationError("At least one parameter has to be monitored.")

    return tuple(name for name in MONITORABLE_PARAMETERS if name in requested)


@dataclasses.dataclass(frozen=True)
class RunConfig:
    """Settings of the Markov chain Monte Carlo run.

    Attrs:
        n_iter: total number of sweeps per chain, including burn-in
        n_burnin: number of initial sweeps to be discarded
        n_thin: every `n_thin`-th sweep after burn-in is retained
        n_chains: number of independent chains
        monitored_params: parameters stored in the chains,
          a subset of `Beta`, `Gamma`, `p` and `tau`
        seed: random seed. Chains use independent streams derived from it

    Each chain retains `(n_iter - n_burnin) // n_thin` draws.
    """

    n_iter: int = 10_000
    n_burnin: int = 5_000
    n_thin: int = 10
    n_chains: int = 1
    monitored_params: tuple[str, ...] = ("Beta", "Gamma")
    seed: int = 195

    def __post_init__(self) -> None:
        if self.n_burnin < 0:
            raise ConfigurationError(
                f"Burn-in cannot be negative, but is {self.n_burnin}."
            )
        if self.n_iter < self.n_burnin:
            raise ConfigurationError(
                f"Number of iterations ({self.n_iter}) has to be at least "
                f"the burn-in ({self.n_burnin})."
            )
        if self.n_thin < 1:
            raise ConfigurationError(f"Thinning has to be at least 1, is {self.n_thin}.")
        if self.n_chains < 1:
            raise ConfigurationError(
                f"At least one chain is required, but got {self.n_chains}."
            )
        object.__setattr__(
            self, "monitored_params", validate_monitored(self.monitored_params)
        )

    @property
    def n_draws(self) -> int:
        """Number of draws retained in each chain."""
        return (self.n_iter - self.n_burnin) // self.n_thin
