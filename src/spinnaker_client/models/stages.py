"""
Data models for Spinnaker pipeline stages.

A stage document always carries the same handful of common keys (name,
refId, type, requisiteStageRefIds, notifications, ...) next to the keys
specific to its type. Every variant below embeds the common part as
``common`` and adds only its own fields.
"""
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

from pydantic import Field, StrictBool, StrictInt, StrictStr

from .api_model import ApiModel, Document, StringMap, StringSet


class ServerGroupTarget(str, Enum):
    """Which server group of a cluster a stage acts on."""
    CURRENT_ASG_DYNAMIC = "current_asg_dynamic"
    ANCESTOR_ASG_DYNAMIC = "ancestor_asg_dynamic"
    OLDEST_ASG_DYNAMIC = "oldest_asg_dynamic"
    CURRENT_ASG = "current_asg"
    ANCESTOR_ASG = "ancestor_asg"
    OLDEST_ASG = "oldest_asg"
    LARGEST_ASG = "largest_asg"


class ResizeAction(str, Enum):
    SCALE_UP = "scale_up"
    SCALE_DOWN = "scale_down"
    SCALE_EXACT = "scale_exact"
    SCALE_TO_CLUSTER = "scale_to_cluster"


class ResizeType(str, Enum):
    PERCENTAGE = "pct"
    INCREMENTAL = "incr"
    EXACT = "exact"


class Notification(ApiModel):
    """A notification attached to a stage."""
    type: StrictStr = ""
    address: StrictStr = ""
    when: StringSet = frozenset()
    level: StrictStr = ""
    message: Document = Field(default_factory=dict, validate_default=True)


class StageEnabled(ApiModel):
    """Conditional execution expression for a stage."""
    expression: StrictStr = ""
    type: StrictStr = "expression"


class StageCommon(ApiModel):
    """Fields shared by every stage type."""
    name: StrictStr = ""
    ref_id: StrictStr = ""
    type: StrictStr = ""
    requisite_stage_ref_ids: StringSet = frozenset()
    notifications: Tuple[Notification, ...] = ()
    fail_pipeline: StrictBool = True
    continue_pipeline: StrictBool = False
    complete_other_branches_then_fail: StrictBool = False
    send_notifications: StrictBool = False
    stage_enabled: Optional[StageEnabled] = None


class Stage(ApiModel):
    """
    Base class of the stage family.

    Concrete variants set ``STAGE_TYPE`` to their discriminator value. The
    ``type`` of the embedded common part is filled in from it when left
    empty and must agree with it otherwise. When no ``common`` is given it
    is read from the same document as the variant's own fields.
    """
    STAGE_TYPE: ClassVar[str] = ""

    common: StageCommon = Field(default_factory=StageCommon, exclude=True)

    @classmethod
    def _prepare_document(cls, document: Mapping[str, Any], matched: Dict[str, Any]) -> Dict[str, Any]:
        if not cls.STAGE_TYPE:
            raise TypeError(f"{cls.__name__} is not a concrete stage type")

        common = matched.get("common")
        if not isinstance(common, StageCommon):
            common = StageCommon.model_validate(common if isinstance(common, Mapping) else document)

        if not common.type:
            common = common.model_copy(update={"type": cls.STAGE_TYPE})
        elif common.type != cls.STAGE_TYPE:
            raise ValueError(
                f"{cls.__name__} expects type {cls.STAGE_TYPE!r}, got {common.type!r}"
            )

        return {**matched, "common": common}

    @property
    def name(self) -> str:
        return self.common.name

    @property
    def ref_id(self) -> str:
        return self.common.ref_id

    @property
    def stage_type(self) -> str:
        return self.common.type

    @property
    def notifications(self) -> Tuple[Notification, ...]:
        return self.common.notifications


class Moniker(ApiModel):
    app: StrictStr = ""
    cluster: StrictStr = ""
    detail: StrictStr = ""
    stack: StrictStr = ""


class TargetServerGroupStage(Stage):
    """Fields of the stages that pick a server group out of a cluster."""
    cluster: StrictStr = ""
    credentials: StrictStr = ""
    cloud_provider: StrictStr = ""
    cloud_provider_type: StrictStr = ""
    regions: Tuple[StrictStr, ...] = ()
    target: Optional[ServerGroupTarget] = None
    moniker: Optional[Moniker] = None


class DestroyServerGroupStage(TargetServerGroupStage):
    STAGE_TYPE: ClassVar[str] = "destroyServerGroup"


class DisableServerGroupStage(TargetServerGroupStage):
    STAGE_TYPE: ClassVar[str] = "disableServerGroup"

    remaining_enabled_server_groups: StrictInt = 1
    prefer_larger_over_newer: StrictBool = False


class Capacity(ApiModel):
    min: StrictInt = 0
    max: StrictInt = 0
    desired: StrictInt = 0


class ResizeServerGroupStage(TargetServerGroupStage):
    STAGE_TYPE: ClassVar[str] = "resizeServerGroup"

    action: Optional[ResizeAction] = None
    capacity: Optional[Capacity] = None
    resize_type: Optional[ResizeType] = None
    scale_pct: Optional[StrictInt] = None
    scale_num: Optional[StrictInt] = None
    target_healthy_deploy_percentage: Optional[StrictInt] = None


class JudgmentInput(ApiModel):
    value: StrictStr = ""


class ManualJudgmentStage(Stage):
    STAGE_TYPE: ClassVar[str] = "manualJudgment"

    instructions: StrictStr = ""
    judgment_inputs: Tuple[JudgmentInput, ...] = ()
    propagate_authentication_context: StrictBool = False
    stage_timeout_ms: Optional[StrictInt] = None


class JenkinsStage(Stage):
    STAGE_TYPE: ClassVar[str] = "jenkins"

    master: StrictStr = ""
    job: StrictStr = ""
    parameters: StringMap = Field(default_factory=dict, validate_default=True)
    property_file: StrictStr = ""
    mark_unstable_as_successful: StrictBool = False
    wait_for_completion: StrictBool = True


class PipelineStage(Stage):
    """Runs another pipeline."""
    STAGE_TYPE: ClassVar[str] = "pipeline"

    application: StrictStr = ""
    pipeline: StrictStr = ""
    pipeline_parameters: Document = Field(default_factory=dict, validate_default=True)
    wait_for_completion: StrictBool = True
