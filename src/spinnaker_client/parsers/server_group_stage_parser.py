"""
Parsers for the stages that act on a server group of a cluster.
"""
from typing import Any, Mapping, Type

from ..models.errors import DecodeError
from ..models.stages import (
    TargetServerGroupStage, DestroyServerGroupStage, DisableServerGroupStage,
    ResizeServerGroupStage, ResizeAction, ResizeType
)
from .stage_parser import parse_stage_fields, register_stage_parser


def _parse_target_server_group_stage(stage_class: Type[TargetServerGroupStage],
                                     document: Mapping[str, Any]) -> TargetServerGroupStage:
    stage = parse_stage_fields(stage_class, document)
    if stage.target is None:
        raise DecodeError(f"{stage_class.STAGE_TYPE} stage requires a target", field="target")
    return stage


@register_stage_parser(DestroyServerGroupStage.STAGE_TYPE)
def parse_destroy_server_group_stage(document: Mapping[str, Any]) -> DestroyServerGroupStage:
    return _parse_target_server_group_stage(DestroyServerGroupStage, document)


@register_stage_parser(DisableServerGroupStage.STAGE_TYPE)
def parse_disable_server_group_stage(document: Mapping[str, Any]) -> DisableServerGroupStage:
    stage = _parse_target_server_group_stage(DisableServerGroupStage, document)
    if stage.remaining_enabled_server_groups < 0:
        raise DecodeError(
            "remainingEnabledServerGroups must not be negative",
            field="remainingEnabledServerGroups"
        )
    return stage


@register_stage_parser(ResizeServerGroupStage.STAGE_TYPE)
def parse_resize_server_group_stage(document: Mapping[str, Any]) -> ResizeServerGroupStage:
    """
    Parse a resize stage.

    An exact resize needs a capacity; scaling up or down needs the amount
    that matches its resize type (a percentage or an instance count).
    """
    stage = _parse_target_server_group_stage(ResizeServerGroupStage, document)

    if stage.action is None:
        raise DecodeError("resizeServerGroup stage requires an action", field="action")

    if stage.action == ResizeAction.SCALE_EXACT:
        if stage.capacity is None:
            raise DecodeError("scale_exact resize requires a capacity", field="capacity")
        capacity = stage.capacity
        if not capacity.min <= capacity.desired <= capacity.max:
            raise DecodeError(
                f"capacity must satisfy min <= desired <= max, got "
                f"{capacity.min}/{capacity.desired}/{capacity.max}",
                field="capacity"
            )

    elif stage.action in (ResizeAction.SCALE_UP, ResizeAction.SCALE_DOWN):
        if stage.resize_type == ResizeType.PERCENTAGE and stage.scale_pct is None:
            raise DecodeError("percentage resize requires scalePct", field="scalePct")
        if stage.resize_type == ResizeType.INCREMENTAL and stage.scale_num is None:
            raise DecodeError("incremental resize requires scaleNum", field="scaleNum")

    return stage
