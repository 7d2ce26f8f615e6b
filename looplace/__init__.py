"""Engines and metrics for the PVT and 2-back cognitive tasks."""

__version__ = "0.1.6"