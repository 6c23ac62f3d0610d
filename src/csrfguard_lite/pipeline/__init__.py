"""Interceptor pipeline: contract, serialized stages, composition."""
from csrfguard_lite.pipeline.interceptor import Interceptor, InterceptorsWrapper
from csrfguard_lite.pipeline.pipeline import Pipeline
from csrfguard_lite.pipeline.stage import AdmissionScope, SerializedStage, Settled

__all__ = [
    "Interceptor",
    "InterceptorsWrapper",
    "Pipeline",
    "AdmissionScope",
    "SerializedStage",
    "Settled",
]
