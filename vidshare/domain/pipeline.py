# vidshare/domain/pipeline.py
"""
Aggregation pipeline descriptors.

A pipeline is an immutable, ordered tuple of stages. Stages only describe
what to do; vidshare.infrastructure.pipeline turns them into SQL. Keeping the
two apart lets the builder be tested without a database.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Iterator, Optional, Tuple, Type, Union


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class PipelineOrderError(ValueError):
    """A stage sequence breaks the ordering rules"""


# ============================================================================
# Predicates (used by Match)
# ============================================================================


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class AnyOf:
    clauses: Tuple["Predicate", ...]


@dataclass(frozen=True)
class AllOf:
    clauses: Tuple["Predicate", ...]


Predicate = Union[Eq, AnyOf, AllOf]


# ============================================================================
# Expressions (used by AddComputedField)
# ============================================================================


@dataclass(frozen=True)
class Size:
    """Number of documents in a looked-up array"""

    array: str


@dataclass(frozen=True)
class Contains:
    """
    value in <array>.<field>

    A None value never matches, which is how anonymous viewers end up with
    is_liked / is_subscribed = False.
    """

    path: str
    value: Optional[Any]

    @property
    def array(self) -> str:
        return self.path.split(".", 1)[0]

    @property
    def field(self) -> str:
        return self.path.split(".", 1)[1]


Expression = Union[Size, Contains]


# ============================================================================
# Stages
# ============================================================================


@dataclass(frozen=True)
class SearchText:
    """Opaque full-text stage; resolved by the executor's search backend"""

    fields: Tuple[str, ...]
    term: str
    index: str = "default"


@dataclass(frozen=True)
class Match:
    predicate: Predicate


@dataclass(frozen=True)
class Lookup:
    """Join documents of another collection where foreign_key == local_key"""

    collection: str
    local_key: str
    foreign_key: str
    as_: str
    sub_pipeline: Tuple["Stage", ...] = ()


@dataclass(frozen=True)
class Unwind:
    """Flatten a looked-up array to a single embedded document"""

    field: str
    preserve_empty: bool = False


@dataclass(frozen=True)
class AddComputedField:
    name: str
    expression: Expression


@dataclass(frozen=True)
class SortKey:
    field: str
    direction: SortDirection = SortDirection.DESC


@dataclass(frozen=True)
class Sort:
    keys: Tuple[SortKey, ...]

    @property
    def key(self) -> str:
        return self.keys[0].field

    @property
    def direction(self) -> SortDirection:
        return self.keys[0].direction


@dataclass(frozen=True)
class Project:
    """Allow-list of output fields; anything not named is dropped"""

    fields: Tuple[str, ...]


Stage = Union[SearchText, Match, Lookup, Unwind, AddComputedField, Sort, Project]


@dataclass(frozen=True)
class Pipeline:
    """Stages plus the collection they run against"""

    collection: str
    stages: Tuple[Stage, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    def __getitem__(self, index: int) -> Stage:
        return self.stages[index]

    def without(self, *stage_types: Type) -> "Pipeline":
        """Copy with every stage of the given types removed"""
        return replace(
            self,
            stages=tuple(s for s in self.stages if not isinstance(s, stage_types)),
        )

    def for_count(self) -> "Pipeline":
        """The stages that decide membership (no ordering or shaping)"""
        return self.without(Sort, Project)

    def stages_of(self, stage_type: Type) -> Tuple[Stage, ...]:
        return tuple(s for s in self.stages if isinstance(s, stage_type))


# ============================================================================
# Ordering rules
# ============================================================================


def _expression_arrays(expression: Expression) -> Tuple[str, ...]:
    return (expression.array,)


def validate_stage_order(
    stages: Tuple[Stage, ...], require_project: bool = True
) -> None:
    """
    Check a stage sequence against the ordering rules.

    1. SearchText only as the first stage.
    2. Every Match precedes every Lookup.
    3. Computed fields and unwinds only refer to arrays an earlier Lookup made.
    4. At most one Sort, after all computed fields.
    5. Project, if present (required at top level), is the single last stage.

    Sub-pipelines of lookups are checked recursively, without requiring a
    Project.

    Raises:
        PipelineOrderError: on the first violated rule
    """
    looked_up = set()
    seen_lookup = False
    seen_sort = False

    for position, stage in enumerate(stages):
        if isinstance(stage, SearchText):
            if position != 0:
                raise PipelineOrderError(
                    f"SearchText must be the first stage (found at {position})"
                )

        elif isinstance(stage, Match):
            if seen_lookup:
                raise PipelineOrderError(
                    f"Match at {position} comes after a Lookup; filters must run "
                    "before joins"
                )

        elif isinstance(stage, Lookup):
            if seen_sort:
                raise PipelineOrderError(f"Lookup at {position} comes after Sort")
            validate_stage_order(stage.sub_pipeline, require_project=False)
            looked_up.add(stage.as_)
            seen_lookup = True

        elif isinstance(stage, Unwind):
            if stage.field not in looked_up:
                raise PipelineOrderError(
                    f"Unwind of '{stage.field}' before any Lookup produced it"
                )

        elif isinstance(stage, AddComputedField):
            if seen_sort:
                raise PipelineOrderError(
                    f"Computed field '{stage.name}' added after Sort"
                )
            for array in _expression_arrays(stage.expression):
                if array not in looked_up:
                    raise PipelineOrderError(
                        f"Computed field '{stage.name}' needs lookup '{array}' first"
                    )

        elif isinstance(stage, Sort):
            if seen_sort:
                raise PipelineOrderError("Only one Sort stage is allowed")
            if not stage.keys:
                raise PipelineOrderError("Sort needs at least one key")
            seen_sort = True

        if isinstance(stage, Project) and position != len(stages) - 1:
            raise PipelineOrderError("Project must be the last stage")

    if require_project and (not stages or not isinstance(stages[-1], Project)):
        raise PipelineOrderError("Pipeline must end with a Project allow-list")
