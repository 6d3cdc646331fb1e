# Citation model is defined in report.py alongside Report and Block.
# This module re-exports for convenience.
from veritas.models.report import Citation

__all__ = ["Citation"]
