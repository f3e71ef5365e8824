"""
Runtime Configuration Module

Provides configuration loading and management for proof generation.
"""

from .runtime import (
    HttpConfig,
    PipelineConfig,
    ProverConfig,
    RpcConfig,
    RuntimeConfig,
)

__all__ = [
    "RuntimeConfig",
    "RpcConfig",
    "HttpConfig",
    "ProverConfig",
    "PipelineConfig",
]
