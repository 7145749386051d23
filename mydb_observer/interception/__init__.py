"""Interception of collection mutation entry points and the policy deciding which mutations emit events."""

from .arguments import ENTRY_POINTS, MutationCall, normalize_arguments
from .observed_collection import ObservedCollection

__all__ = ["ENTRY_POINTS", "MutationCall", "ObservedCollection", "normalize_arguments"]
