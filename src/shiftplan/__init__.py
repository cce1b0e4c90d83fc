"""Shift scheduling: fairness scoring, coverage checks, swap and vacation workflows."""

__version__ = "0.1.0"
