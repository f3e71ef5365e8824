"""
txinclusion CLI

Command-line interface for transaction inclusion proofs.

Usage:
    python -m txinclusion_cli prove --tx 0x... --mode prove --out fixture.json
    python -m txinclusion_cli prove --block 17000000 --index 3
    python -m txinclusion_cli verify-fixture fixture.json
    python -m txinclusion_cli program-id
"""

__version__ = "0.1.0"
