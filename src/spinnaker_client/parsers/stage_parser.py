"""
Stage parsing: turns untyped stage documents into typed stage variants.

Each stage type registers its own parse function against its
discriminator value. Dispatch only looks the value up, so adding a stage
type never touches the parsers of the others.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from pydantic import TypeAdapter

from ..models.errors import DecodeError
from ..models.stages import Notification, Stage, StageCommon
from .model_decoder import decode_model, decode_value


DISCRIMINATOR_KEY = "type"
NOTIFICATIONS_KEY = "notifications"

StageParseFunc = Callable[[Mapping[str, Any]], Stage]

_notifications = TypeAdapter(Tuple[Notification, ...])


def _lookup(document: Mapping[str, Any], key: str) -> Any:
    """Case-insensitive key lookup, matching the model key rules."""
    if key in document:
        return document[key]
    wanted = key.lower()
    for name, value in document.items():
        if str(name).lower() == wanted:
            return value
    return None


def parse_notifications(value: Any) -> Tuple[Notification, ...]:
    """
    Parse the notifications list of a stage.

    Args:
        value: The raw ``notifications`` entry, possibly None

    Returns:
        Notifications in document order; empty when the entry is absent

    Raises:
        DecodeError: If the entry is not a list or an item is malformed
    """
    if value is None:
        return ()

    if not isinstance(value, (list, tuple)):
        raise DecodeError(
            f"{NOTIFICATIONS_KEY}: expected a list, got {type(value).__name__}",
            field=NOTIFICATIONS_KEY
        )

    return decode_value(_notifications, value, NOTIFICATIONS_KEY)


def parse_stage_fields(stage_class: Type[Stage], document: Mapping[str, Any]) -> Stage:
    """
    Map a stage document onto a stage class.

    The notifications, the common part and the variant's own fields are
    decoded in that order; the stage is only constructed once all of them
    succeeded.
    """
    notifications = parse_notifications(_lookup(document, NOTIFICATIONS_KEY))
    common = decode_model(StageCommon, {**document, NOTIFICATIONS_KEY: notifications})
    return decode_model(stage_class, {**document, "common": common})


def encode_stage(stage: Stage) -> Dict[str, Any]:
    """
    Turn a stage back into the document the API expects.

    Args:
        stage: Any stage variant

    Returns:
        A JSON compatible document with the common and variant keys merged
    """
    document = stage.common.to_document()
    document.update(stage.to_document())
    return document


class StageParserRegistry:
    """Registry of stage parse functions keyed by discriminator value."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._parsers: Dict[str, StageParseFunc] = {}

    def register(self, stage_type: str, parser: Optional[StageParseFunc] = None):
        """
        Register a parse function for a stage type.

        Usable directly or as a decorator::

            @registry.register("destroyServerGroup")
            def parse_destroy_server_group_stage(document):
                ...

        Raises:
            ValueError: If the stage type already has a parser
        """
        def decorator(func: StageParseFunc) -> StageParseFunc:
            if not stage_type:
                raise ValueError("stage type must not be empty")
            if stage_type in self._parsers:
                raise ValueError(f"A parser is already registered for stage type {stage_type!r}")
            self._parsers[stage_type] = func
            self.logger.debug(f"Registered parser for stage type {stage_type}")
            return func

        if parser is not None:
            return decorator(parser)
        return decorator

    def get_parser(self, stage_type: str) -> Optional[StageParseFunc]:
        """Get the parse function registered for a stage type."""
        return self._parsers.get(stage_type)

    def stage_types(self) -> List[str]:
        """List the registered stage types."""
        return sorted(self._parsers)

    def decode(self, document: Any) -> Stage:
        """
        Decode a stage document into its typed variant.

        Args:
            document: Mapping of string keys to plain values

        Returns:
            The stage variant selected by the document's ``type``

        Raises:
            DecodeError: If the document is not a mapping, has no type, has
                an unsupported type, or does not fit its variant
        """
        if not isinstance(document, Mapping):
            raise DecodeError(f"stage document must be an object, got {type(document).__name__}")

        stage_type = _lookup(document, DISCRIMINATOR_KEY)
        if not isinstance(stage_type, str) or not stage_type:
            raise DecodeError("stage document has no type", field=DISCRIMINATOR_KEY)

        parser = self._parsers.get(stage_type)
        if parser is None:
            raise DecodeError(f"unsupported stage type {stage_type!r}", field=DISCRIMINATOR_KEY)

        return parser(document)

    def decode_all(self, documents: Iterable[Any]) -> List[Stage]:
        """Decode a list of stage documents, failing on the first bad one."""
        return [self.decode(document) for document in documents]

default_registry = StageParserRegistry()
register_stage_parser = default_registry.register

def decode_stage(document: Any, registry: Optional[StageParserRegistry] = None) -> Stage:
    """Decode a stage document with the default registry."""
    return (registry or default_registry).decode(document)

def decode_stages(documents: Iterable[Any], registry: Optional[StageParserRegistry] = None) -> List[Stage]:
    """Decode every stage document of a pipeline."""
    return (registry or default_registry).decode_all(documents)
