"""
Parsers package: document decoding and stage dispatch.
"""

from .model_decoder import decode_error, decode_model, decode_value
from .stage_parser import (
    StageParserRegistry, default_registry, register_stage_parser,
    decode_stage, decode_stages, encode_stage, parse_notifications, parse_stage_fields
)
from . import server_group_stage_parser, pipeline_stage_parser

__all__ = [
    'decode_error',
    'decode_model',
    'decode_value',
    'StageParserRegistry',
    'default_registry',
    'register_stage_parser',
    'decode_stage',
    'decode_stages',
    'encode_stage',
    'parse_notifications',
    'parse_stage_fields'
]
