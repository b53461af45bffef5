"""Front-end pipeline glue for parsing and global extraction."""

from .pipeline import FrontEndResult, run_frontend

__all__ = ["FrontEndResult", "run_frontend"]
