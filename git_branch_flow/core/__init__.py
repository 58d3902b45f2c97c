"""Core workflow entry points."""

from .flow import GitFlow, init_repository

__all__ = ["GitFlow", "init_repository"]
