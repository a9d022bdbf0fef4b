"""
solvelog - Solver error-log monitoring.

Import solver logs, inspect convergence per load step, chart the residuals.
"""

from solvelog.transform import NOISE_FLOOR, iteration_count, split_error_log

__version__ = "0.1.0"
__all__ = ["NOISE_FLOOR", "iteration_count", "split_error_log", "__version__"]
