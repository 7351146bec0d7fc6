"""Generic utilities for sampling."""

from bmrf.sampling._chain import DatasetInterface, SampleChain
from bmrf.sampling._sampler import AbstractGibbsSampler, SamplerPhase

__all__ = [
    "DatasetInterface",
    "SampleChain",
    "AbstractGibbsSampler",
    "SamplerPhase",
]
