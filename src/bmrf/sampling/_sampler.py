"""Generic Gibbs sampler with burn-in, thinning and stopping
at sweep boundaries."""

import abc
import enum
import logging
import time
from typing import Any, Optional, Sequence

import tqdm

from bmrf._errors import ConfigurationError
from bmrf.sampling._chain import DatasetInterface

_LOGGER = logging.getLogger(__name__)


class SamplerPhase(enum.Enum):
    """Phases of a run."""

    INITIALIZING = "initializing"
    BURNING_IN = "burning-in"
    SAMPLING = "sampling"
    DONE = "done"


class AbstractGibbsSampler(abc.ABC):
    """Abstract Gibbs sampler.

    All children classes should implement:
      dimensions: describes the sample and the shapes
      initialise: the starting state
      new_sample: Markov chain transition to a new state
      summarise: extracts the monitored sites from the state

    A run consists of `n_iter` sweeps. The first `n_burnin` are discarded
    and afterwards every `n_thin`-th state is appended to the data sets.
    """

    def __init__(
        self,
        datasets: Sequence[DatasetInterface],
        *,
        n_iter: int = 10_000,
        n_burnin: int = 5_000,
        n_thin: int = 10,
        verbose: bool = False,
    ) -> None:
        """
        Args:
            datasets: data sets storing the samples
            n_iter: total number of sweeps, including burn-in
            n_burnin: number of sweeps to be discarded
            n_thin: every `n_thin`-th sweep after burn-in is stored
            verbose: whether to display a progress bar

        Raises:
            ConfigurationError, if the numbers of sweeps are inconsistent
        """
        if n_burnin < 0:
            raise ConfigurationError(f"Burn-in cannot be negative, but is {n_burnin}.")
        if n_iter < n_burnin:
            raise ConfigurationError(
                f"Number of iterations ({n_iter}) has to be at least "
                f"the burn-in ({n_burnin})."
            )
        if n_thin < 1:
            raise ConfigurationError("Thinning should be at least 1.")

        self.datasets = list(datasets)
        self.n_iter = n_iter
        self.n_burnin = n_burnin
        self.n_thin = n_thin
        self.verbose = verbose

        self.phase = SamplerPhase.INITIALIZING
        self.iteration: int = 0
        self._state: Any = None
        self._stop_requested: bool = False

    @abc.abstractclassmethod
    def dimensions(cls) -> dict:
        """Returns dictionary describing
        the dimensions, e.g.,:
        {
            "Beta": ["edge"],
            "tau": [],
        }
        """
        raise NotImplementedError

    @abc.abstractmethod
    def new_sample(self, state: Any, iteration: int) -> Any:
        """Transition to a new state at sweep `iteration` (counted from 1)."""
        raise NotImplementedError

    @abc.abstractmethod
    def initialise(self) -> Any:
        """Initializes the state."""
        raise NotImplementedError

    @abc.abstractmethod
    def summarise(self, state: Any) -> dict:
        """Extracts the sites which should be stored."""
        raise NotImplementedError

    def inspect(self, state: Any, iteration: int) -> None:
        """Hook executed after every sweep, e.g., to run diagnostics.
        Does nothing by default."""
        return

    @property
    def state(self) -> Any:
        """The most recent state."""
        return self._state

    def request_stop(self) -> None:
        """Asks the sampler to stop. The current sweep is finished
        and the samples collected so far are kept."""
        self._stop_requested = True

    def _is_retained(self, iteration: int) -> bool:
        """Whether the state after sweep `iteration` is stored."""
        after_burnin = iteration - self.n_burnin
        return after_burnin > 0 and after_burnin % self.n_thin == 0

    def _append(self, sample: dict, iteration: int) -> None:
        """Appends the sample to all data sets."""
        for dataset in self.datasets:
            dataset.append_sample(sample, iteration)

    def _end_run(self) -> None:
        """Signalizes to all data sets that sampling
        has finished."""
        for dataset in self.datasets:
            dataset.end()

    def run(self, start: Optional[tuple[int, Any]] = None) -> None:
        """Full Gibbs sampling run.

        Args:
            start: optional pair `(iteration, state)` to resume from.
              The next sweep will be `iteration + 1`
        """
        self.phase = SamplerPhase.INITIALIZING
        self._stop_requested = False

        if start is None:
            _LOGGER.info("Initialising the first sample...")
            iteration, state = 0, self.initialise()
        else:
            iteration, state = start
            _LOGGER.info(f"Resuming after sweep {iteration}...")

        self.iteration, self._state = iteration, state

        t0 = time.time()
        t_sampling: Optional[float] = None

        for t in tqdm.tqdm(
            range(iteration + 1, self.n_iter + 1),
            total=self.n_iter - iteration,
            disable=not self.verbose,
        ):
            if self._stop_requested:
                _LOGGER.info(f"Stop requested. Finishing after sweep {t - 1}.")
                break

            if t <= self.n_burnin:
                if self.phase is not SamplerPhase.BURNING_IN:
                    _LOGGER.info(
                        f"Starting burn-in period with {self.n_burnin - t + 1} sweeps..."
                    )
                self.phase = SamplerPhase.BURNING_IN
            elif self.phase is not SamplerPhase.SAMPLING:
                if t - 1 > iteration:
                    dt = time.time() - t0
                    _LOGGER.info(
                        f"Burn-in finished in {dt:.1f} seconds "
                        f"({((t - 1 - iteration) / max(dt, 1e-9)):.1f} sweeps/s). "
                        f"Starting proper sampling..."
                    )
                self.phase = SamplerPhase.SAMPLING
                t_sampling = time.time()

            state = self.new_sample(state, t)
            self.iteration, self._state = t, state
            self.inspect(state, t)

            if self._is_retained(t):
                self._append(self.summarise(state), t)

        t2 = time.time()
        if t_sampling is not None:
            _LOGGER.info(f"Finished sampling in {t2 - t_sampling:.1f} seconds.")

        self.phase = SamplerPhase.DONE
        self._end_run()
        _LOGGER.info(f"Run finished in {t2 - t0:.1f} seconds.")
