"""
Parsers for the stages that gate or hand off pipeline execution:
manual judgments, Jenkins jobs and nested pipelines.
"""
from typing import Any, Mapping

from ..models.errors import DecodeError
from ..models.stages import ManualJudgmentStage, JenkinsStage, PipelineStage
from .stage_parser import parse_stage_fields, register_stage_parser


@register_stage_parser(ManualJudgmentStage.STAGE_TYPE)
def parse_manual_judgment_stage(document: Mapping[str, Any]) -> ManualJudgmentStage:
    stage = parse_stage_fields(ManualJudgmentStage, document)
    if stage.stage_timeout_ms is not None and stage.stage_timeout_ms <= 0:
        raise DecodeError("stageTimeoutMs must be positive", field="stageTimeoutMs")
    return stage


@register_stage_parser(JenkinsStage.STAGE_TYPE)
def parse_jenkins_stage(document: Mapping[str, Any]) -> JenkinsStage:
    stage = parse_stage_fields(JenkinsStage, document)
    if not stage.master or not stage.job:
        raise DecodeError("jenkins stage requires a master and a job", field="job")
    return stage


@register_stage_parser(PipelineStage.STAGE_TYPE)
def parse_pipeline_stage(document: Mapping[str, Any]) -> PipelineStage:
    stage = parse_stage_fields(PipelineStage, document)
    if not stage.application or not stage.pipeline:
        raise DecodeError("pipeline stage requires an application and a pipeline", field="pipeline")
    return stage
