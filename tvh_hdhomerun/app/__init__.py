"""Application entrypoints for the tuner service."""

from .service import build_context, main, parse_args, run, run_once, run_service

__all__ = ["build_context", "main", "parse_args", "run", "run_once", "run_service"]
