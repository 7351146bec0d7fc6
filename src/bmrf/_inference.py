"""Inference of a partial correlation network from data."""

import logging
from typing import Optional

import jax.numpy as jnp
from jaxtyping import Array, Float

from bmrf._config import RunConfig
from bmrf._data import standardize, validate_observations
from bmrf._driver import CARSpikeAndSlabSampler
from bmrf._edges import EdgeIndexMap
from bmrf._errors import ConfigurationError
from bmrf._prior import PriorSpecification
from bmrf.sampling import SampleChain

_LOGGER = logging.getLogger(__name__)


def run_chains(
    data: Float[Array, "points variables"],
    edges: EdgeIndexMap,
    prior: PriorSpecification,
    config: Optional[RunConfig] = None,
    **sampler_kwargs,
) -> list[SampleChain]:
    """Runs `config.n_chains` independent chains.

    Args:
        data: standardized observations, shape (n_points, n_variables)
        edges: edge index
        prior: hyperparameters
        config: run configuration. By default `RunConfig()`
        sampler_kwargs: passed to `CARSpikeAndSlabSampler`,
          e.g., `verbose` or `initial_step_size`

    Returns:
        one chain per requested chain, in order.
        Chain `c` is a deterministic function of `config.seed` and `c`.
    """
    config = config or RunConfig()
    data = validate_observations(data, n_variables=edges.n_variables)

    chains = []
    for c in range(config.n_chains):
        _LOGGER.info(f"Running chain {c + 1}/{config.n_chains}...")
        sampler = CARSpikeAndSlabSampler(
            data=data,
            edges=edges,
            prior=prior,
            n_iter=config.n_iter,
            n_burnin=config.n_burnin,
            n_thin=config.n_thin,
            monitored_params=config.monitored_params,
            seed=config.seed,
            chain=c,
            **sampler_kwargs,
        )
        chains.append(sampler.run())
    return chains


def infer_network(
    dataset,
    edge_index=None,
    prior_edge=None,
    config: Optional[RunConfig] = None,
    *,
    one_based: bool = False,
    **prior_kwargs,
) -> list[SampleChain]:
    """Estimates the network structure (`Gamma`) and the partial
    correlations (`Beta`) of the variables in `dataset`.

    Args:
        dataset: raw observations, shape (n_points, n_variables).
          Each column is standardized before sampling
        edge_index: array of shape (n_edges, 2) listing the pair of
          variables of each edge. By default the upper triangle
          listed row by row
        prior_edge: binary vector, `prior_edge[k] = 1` marks edges
          which are believed to be present. By default all zeros
        config: run configuration
        one_based: whether `edge_index` numbers the variables from 1.
          Requires `edge_index`
        prior_kwargs: passed to `PriorSpecification.from_prior_edge`

    Returns:
        list of sample chains, one per chain

    Raises:
        DataError, if the data cannot be standardized
        ConfigurationError, if the edge index, the prior
          or the configuration is malformed
    """
    data = standardize(dataset)
    n_variables = data.shape[1]

    if edge_index is None:
        if one_based:
            raise ConfigurationError(
                "`one_based` applies to an explicit `edge_index`, but none was given."
            )
        edges = EdgeIndexMap.upper_triangle(n_variables)
    else:
        edges = EdgeIndexMap(edge_index, n_variables, one_based=one_based)

    if prior_edge is None:
        prior_edge = jnp.zeros(edges.n_edges, dtype=int)
    if len(prior_edge) != edges.n_edges:
        raise ConfigurationError(
            f"Prior edge vector has length {len(prior_edge)}, "
            f"but there are {edges.n_edges} edges."
        )
    prior = PriorSpecification.from_prior_edge(prior_edge, **prior_kwargs)

    return run_chains(data, edges=edges, prior=prior, config=config)
