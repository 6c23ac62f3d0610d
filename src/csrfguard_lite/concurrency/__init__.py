"""Shared-state and admission primitives for the pipeline.

  - CredentialCache: atomic single-token slot shared across stages
  - StageQueue: FIFO single-slot admission queue for one stage
"""
from csrfguard_lite.concurrency.credential_cache import CredentialCache
from csrfguard_lite.concurrency.stage_queue import StageQueue

__all__ = [
    "CredentialCache",
    "StageQueue",
]
