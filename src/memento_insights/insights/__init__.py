"""Insight generation pipeline stages"""

from .assembler import AssembledResponse, ResponseAssembler
from .cache import CacheLookup, CacheReader, CacheWriter, CacheWriteResult
from .gate import RequestGate
from .pipeline import InsightPipeline, get_pipeline
from .repair import ResponsePayloadRepairer
from .synthesizer import InsightSynthesizer

__all__ = [
    'AssembledResponse',
    'CacheLookup',
    'CacheReader',
    'CacheWriteResult',
    'CacheWriter',
    'InsightPipeline',
    'InsightSynthesizer',
    'RequestGate',
    'ResponseAssembler',
    'ResponsePayloadRepairer',
    'get_pipeline',
]
