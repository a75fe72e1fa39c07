"""Shared helpers: random generators and the worker pool."""

from .random import make_rng
from .worker_pool import BoundedWorkerPool

__all__ = ['make_rng', 'BoundedWorkerPool']
