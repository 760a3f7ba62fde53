"""Fresh-project WBS generation."""

from wbscalc.wbs.builder import BuildResult, WBSBuilder

__all__ = ["BuildResult", "WBSBuilder"]
