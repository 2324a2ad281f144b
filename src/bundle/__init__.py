"""Bundle assembly, persistence and the build pipeline."""

from .writer import assemble_map, compute_logical_size, load_bundle, write_bundle
from .orchestrate import BuildSummary, build_bundle

__all__ = [
    "assemble_map",
    "compute_logical_size",
    "load_bundle",
    "write_bundle",
    "BuildSummary",
    "build_bundle",
]
