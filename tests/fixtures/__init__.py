"""Shared pytest fixtures for the product catalog tests."""

from .core import *  # noqa: F401,F403
