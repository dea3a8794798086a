"""Insights package."""

from budget_vault.insights.calculator import InsightsCalculator

__all__ = ["InsightsCalculator"]
