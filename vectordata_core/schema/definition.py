"""
Record schema model

Immutable descriptors for the key, data and vector properties of a record type,
and the ``RecordSchema`` that groups them. A schema is built once per record type
(see ``reader.read_record_schema``) or supplied explicitly by the caller.
"""

import types
from collections.abc import Sequence as AbcSequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, List, Optional, Tuple, Union, get_args, get_origin

import numpy as np

from vectordata_core.core.exceptions import SchemaError


class IndexKind(str, Enum):
    """Search index algorithm applied to a vector property."""

    HNSW = "Hnsw"
    FLAT = "Flat"


class DistanceFunction(str, Enum):
    """Similarity metric used to compare vectors."""

    COSINE_SIMILARITY = "CosineSimilarity"
    COSINE_DISTANCE = "CosineDistance"
    DOT_PRODUCT_SIMILARITY = "DotProductSimilarity"
    EUCLIDEAN_DISTANCE = "EuclideanDistance"
    MANHATTAN_DISTANCE = "ManhattanDistance"


SUPPORTED_FLOAT_ELEMENT_TYPES = (np.float32, np.float64)

_UNION_TYPES = (Union, getattr(types, "UnionType", Union))
_SEQUENCE_ORIGINS = (list, tuple, AbcSequence)


def strip_annotated(annotation: Any) -> Any:
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return annotation


def unwrap_optional(annotation: Any) -> Any:
    """Return ``T`` for ``Optional[T]``, otherwise the annotation unchanged.

    ``Annotated`` metadata is stripped on both levels.
    """
    annotation = strip_annotated(annotation)
    if get_origin(annotation) in _UNION_TYPES:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return strip_annotated(args[0])
    return annotation


def get_collection_element_type(annotation: Any) -> Optional[Any]:
    """Return the element type of ``list[T]``/``tuple[T, ...]``/``Sequence[T]``, or None."""
    annotation = unwrap_optional(annotation)
    if get_origin(annotation) not in _SEQUENCE_ORIGINS:
        return None
    args = [strip_annotated(arg) for arg in get_args(annotation) if arg is not Ellipsis]
    if len(set(args)) != 1:
        return None
    return args[0]


def resolve_vector_element_type(annotation: Any) -> Optional[Any]:
    """Resolve the element type stored for a vector annotation.

    Python floats resolve to single precision; numpy float types resolve to
    themselves. Other element types are returned as-is so that backends can
    reject them by type.
    """
    element_type = get_collection_element_type(annotation)
    if element_type is None or element_type is Any:
        return None
    if element_type is float:
        return np.float32
    return element_type


@dataclass(frozen=True)
class KeyProperty:
    """The single property identifying a record."""

    name: str
    property_type: Any = str
    storage_property_name: Optional[str] = None

    @property
    def storage_name(self) -> str:
        return self.storage_property_name or self.name


@dataclass(frozen=True)
class DataProperty:
    """A scalar (or collection of scalars) metadata property."""

    name: str
    property_type: Any = None
    storage_property_name: Optional[str] = None
    is_filterable: bool = False
    is_full_text_searchable: bool = False

    @property
    def storage_name(self) -> str:
        return self.storage_property_name or self.name


@dataclass(frozen=True)
class VectorProperty:
    """A fixed-dimensionality embedding property.

    ``element_type`` is resolved from ``property_type`` when not given explicitly;
    ``holds_python_floats`` is set when that resolution started from plain
    ``float`` elements.
    """

    name: str
    dimensions: Optional[int] = None
    property_type: Any = List[float]
    storage_property_name: Optional[str] = None
    index_kind: IndexKind = IndexKind.HNSW
    distance_function: DistanceFunction = DistanceFunction.COSINE_SIMILARITY
    element_type: Any = None
    holds_python_floats: bool = field(default=False, init=False, compare=False, repr=False)

    def __post_init__(self):
        if self.element_type is None:
            object.__setattr__(
                self,
                "holds_python_floats",
                get_collection_element_type(self.property_type) is float,
            )
            object.__setattr__(
                self, "element_type", resolve_vector_element_type(self.property_type)
            )
        if self.element_type is None:
            raise SchemaError(
                f"Vector property '{self.name}' has no resolvable element type "
                f"(declared as {self.property_type!r})"
            )
        if self.dimensions is not None and (
            isinstance(self.dimensions, bool) or not isinstance(self.dimensions, int)
        ):
            raise SchemaError(
                f"Vector property '{self.name}' dimensions must be an integer"
            )

    @property
    def storage_name(self) -> str:
        return self.storage_property_name or self.name


PropertyDescriptor = Union[KeyProperty, DataProperty, VectorProperty]


@dataclass(frozen=True)
class RecordSchema:
    """Ordered, immutable description of a record type's properties.

    Exactly one key property and at least one vector property are required.
    """

    properties: Tuple[PropertyDescriptor, ...]

    def __post_init__(self):
        object.__setattr__(self, "properties", tuple(self.properties))
        self._validate()

    def _validate(self) -> None:
        keys = [p for p in self.properties if isinstance(p, KeyProperty)]
        if not keys:
            raise SchemaError("No key property found on record definition")
        if len(keys) > 1:
            names = ", ".join(k.name for k in keys)
            raise SchemaError(f"Multiple key properties found on record definition: {names}")

        if not any(isinstance(p, VectorProperty) for p in self.properties):
            raise SchemaError("No vector property found on record definition")

        seen_names = set()
        seen_storage_names = set()
        for prop in self.properties:
            if not isinstance(prop, (KeyProperty, DataProperty, VectorProperty)):
                raise SchemaError(f"Unknown property descriptor: {prop!r}")
            if prop.name in seen_names:
                raise SchemaError(f"Duplicate property name '{prop.name}'")
            if prop.storage_name in seen_storage_names:
                raise SchemaError(f"Duplicate storage name '{prop.storage_name}'")
            seen_names.add(prop.name)
            seen_storage_names.add(prop.storage_name)

    @property
    def key_property(self) -> KeyProperty:
        return next(p for p in self.properties if isinstance(p, KeyProperty))

    @property
    def data_properties(self) -> List[DataProperty]:
        return [p for p in self.properties if isinstance(p, DataProperty)]

    @property
    def vector_properties(self) -> List[VectorProperty]:
        return [p for p in self.properties if isinstance(p, VectorProperty)]

    @property
    def property_names(self) -> List[str]:
        return [p.name for p in self.properties]
