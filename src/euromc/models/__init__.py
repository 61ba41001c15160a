"""Analytic reference models."""

from . import bs

__all__ = ["bs"]
