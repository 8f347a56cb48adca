"""
Base model for documents exchanged with the Spinnaker API.

Field names are snake_case in Python and camelCase on the wire. Keys of an
incoming document are matched to fields case-insensitively; keys no field
declares are dropped, and an explicit null keeps the field default.
"""
import functools
from types import MappingProxyType
from typing import Annotated, Any, Dict, FrozenSet, List, Mapping

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer, StrictStr, model_validator
from pydantic.alias_generators import to_camel


def _read_only(value: Mapping) -> Mapping:
    return MappingProxyType(dict(value))


def _sorted(values) -> List[str]:
    return sorted(values)


# Sets of strings are written out sorted so encoded documents are stable
StringSet = Annotated[FrozenSet[StrictStr], PlainSerializer(_sorted, return_type=List[str])]

# Mappings are stored behind a read-only proxy and written out as plain dicts
StringMap = Annotated[Dict[StrictStr, StrictStr], AfterValidator(_read_only), PlainSerializer(dict)]
Document = Annotated[Dict[StrictStr, Any], AfterValidator(_read_only), PlainSerializer(dict)]


@functools.lru_cache(maxsize=None)
def _wire_keys(cls: type) -> Dict[str, str]:
    """Lower-cased field name and alias of every field, mapped to the alias."""
    keys = {}
    for name, field in cls.model_fields.items():
        alias = field.alias or to_camel(name)
        keys[name.lower()] = alias
        keys[alias.lower()] = alias
    return keys


class ApiModel(BaseModel):
    """
    Immutable value decoded from, and encoded to, an API document.

    Scalars are declared with pydantic's strict types: a string is never
    turned into a number and a number is never turned into a string.
    Containers and enums use pydantic's standard validation so JSON arrays
    become tuples and frozensets and enum values become members.

    Models compare by value. Mapping fields are read-only proxies, so
    models holding them cannot be hashed.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _match_keys(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data

        keys = _wire_keys(cls)
        matched = {}
        for key, value in data.items():
            alias = keys.get(str(key).lower())
            if alias is None or value is None:
                continue
            matched[alias] = value
        return cls._prepare_document(data, matched)

    @classmethod
    def _prepare_document(cls, document: Mapping[str, Any], matched: Dict[str, Any]) -> Dict[str, Any]:
        """Hook for subclasses; receives the raw document and its matched keys."""
        return matched

    def to_document(self) -> Dict[str, Any]:
        """Encode as a JSON compatible document with camelCase keys and no nulls."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
