"""Bayesian Markov random fields: partial correlation networks
learned with a spike-and-slab prior and a conditional
autoregressive likelihood."""

import bmrf.sampling as sampling

from bmrf._assemble import assemble_effect_matrix
from bmrf._checkpoint import Checkpoint, save_checkpoint, load_checkpoint
from bmrf._config import RunConfig, MONITORABLE_PARAMETERS
from bmrf._data import standardize
from bmrf._driver import CARSpikeAndSlabSampler, DivergenceMonitor
from bmrf._edges import EdgeIndexMap, number_of_edges
from bmrf._errors import ConfigurationError, DataError
from bmrf._inference import infer_network, run_chains
from bmrf._prior import PriorSpecification
from bmrf._state import ChainState, ParameterState
from bmrf.sampling import SampleChain

__all__ = [
    "sampling",
    "assemble_effect_matrix",
    "Checkpoint",
    "save_checkpoint",
    "load_checkpoint",
    "RunConfig",
    "MONITORABLE_PARAMETERS",
    "standardize",
    "CARSpikeAndSlabSampler",
    "DivergenceMonitor",
    "EdgeIndexMap",
    "number_of_edges",
    "ConfigurationError",
    "DataError",
    "infer_network",
    "run_chains",
    "PriorSpecification",
    "ChainState",
    "ParameterState",
    "SampleChain",
]
