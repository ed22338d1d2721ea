"""Candidate sources and concurrent fan-out."""

from src.sources.base import CandidatePoolProvider, CandidateSource
from src.sources.cache import SourceCache, criteria_fingerprint
from src.sources.internal import BuySignalResponsesSource, InternalListingsSource
from src.sources.runner import SourceRunner


__all__ = [
    "BuySignalResponsesSource",
    "CandidatePoolProvider",
    "CandidateSource",
    "InternalListingsSource",
    "SourceCache",
    "SourceRunner",
    "criteria_fingerprint",
]
