"""jpegsweep - exhaustive conformance sweep for GPU JPEG encoders."""

__version__: str = "0.1.0"

from .formats import ChromaSubsampling, OutputFormat, plane_geometry
from .isolation import run_isolated
from .sweep import iter_trial_configs, run_sweep
from .trial import TrialConfig, TrialOutcome, run_trial

__all__ = [
    "ChromaSubsampling",
    "OutputFormat",
    "TrialConfig",
    "TrialOutcome",
    "iter_trial_configs",
    "plane_geometry",
    "run_isolated",
    "run_sweep",
    "run_trial",
]
