"""
Pipeline Integration (In-Process Runtime Wiring)

Composes the chain data provider, proof generation and the proving backend
into one run per transaction.

Public API:
- InclusionPipeline: Main pipeline runner class
- PipelineResult: Complete result of a pipeline run
- ProverMode: Execute only, or execute and attest
- create_backend: Look up a proving backend by configured name
"""

from orchestrator.pipeline import (
    InclusionPipeline,
    PipelineResult,
    ProverMode,
    create_backend,
)


__all__ = [
    "InclusionPipeline",
    "PipelineResult",
    "ProverMode",
    "create_backend",
]
