"""Execution plan building and execution."""

from pkgvault.plan.builder import ExecutionPlanBuilder
from pkgvault.plan.plan import ExecutionPlan

__all__ = ["ExecutionPlan", "ExecutionPlanBuilder"]
