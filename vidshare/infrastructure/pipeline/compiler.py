# vidshare/infrastructure/pipeline/compiler.py
"""
Pipeline Compiler
Translates pipeline stage descriptors into a single SQLAlchemy SELECT

Mapping:
    SearchText        -> WHERE clause from the text search backend
    Match             -> WHERE clause
    Lookup            -> aliased table + correlation condition (no SQL yet)
    Unwind            -> JOIN on that correlation (LEFT JOIN if preserve_empty)
    AddComputedField  -> correlated COUNT(*) subquery / EXISTS
    Sort              -> ORDER BY
    Project           -> labelled output columns

Nested documents are flattened into labels joined by "__"
("owner__username") and rebuilt by the executor.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from sqlalchemy import Boolean, Select, and_, false, func, inspect, literal, literal_column, or_, select
from sqlalchemy.orm import aliased

from vidshare.app.models import Comment, Like, Subscription, Tweet, User, Video
from vidshare.domain.pipeline import (
    AddComputedField,
    AllOf,
    AnyOf,
    Contains,
    Eq,
    Expression,
    Lookup,
    Match,
    Pipeline,
    Predicate,
    Project,
    SearchText,
    Size,
    Sort,
    SortDirection,
    Stage,
    Unwind,
)
from .search import SubstringSearchBackend, TextSearchBackend

logger = logging.getLogger(__name__)

LABEL_SEPARATOR = "__"

COLLECTIONS: Dict[str, Any] = {
    "users": User,
    "videos": Video,
    "comments": Comment,
    "tweets": Tweet,
    "likes": Like,
    "subscriptions": Subscription,
}


class PipelineCompileError(ValueError):
    """A stage refers to something the schema does not have"""


@dataclass
class CompiledQuery:
    statement: Select
    boolean_labels: FrozenSet[str] = frozenset()


@dataclass
class _ArrayBinding:
    """A Lookup result that has not been unwound"""

    entity: Any
    correlation: List[Any]
    scope: "_Scope"


@dataclass
class _Scope:
    """Compilation state for one level of (sub-)pipeline"""

    entity: Any
    where: List[Any] = field(default_factory=list)
    arrays: Dict[str, _ArrayBinding] = field(default_factory=dict)
    rows: Dict[str, "_Scope"] = field(default_factory=dict)
    joins: List[Tuple[Any, Any, bool]] = field(default_factory=list)
    computed: Dict[str, Any] = field(default_factory=dict)
    booleans: set = field(default_factory=set)
    order_by: List[Any] = field(default_factory=list)
    projection: Optional[Tuple[str, ...]] = None

    def column_names(self) -> List[str]:
        return [attr.key for attr in inspect(self.entity).mapper.column_attrs]

    def column(self, name: str):
        if name not in self.column_names():
            raise PipelineCompileError(
                f"Unknown field '{name}' on {inspect(self.entity).mapper.class_.__name__}"
            )
        return getattr(self.entity, name)

    def resolve(self, path: str):
        """Column or computed expression for a (possibly dotted) field path"""
        head, _, rest = path.partition(".")
        if rest:
            if head not in self.rows:
                raise PipelineCompileError(
                    f"'{head}' is not an unwound lookup (path '{path}')"
                )
            return self.rows[head].resolve(rest)
        if path in self.computed:
            return self.computed[path]
        return self.column(path)

    def is_boolean(self, path: str) -> bool:
        head, _, rest = path.partition(".")
        if rest:
            return head in self.rows and self.rows[head].is_boolean(rest)
        return path in self.booleans

    def output_columns(self, prefix: str = "") -> Tuple[List[Any], List[str]]:
        """Labelled columns for this scope plus the labels holding booleans"""
        if self.projection is not None:
            names = list(self.projection)
        else:
            names = self.column_names() + list(self.computed)
            names += [name for name, row in self.rows.items() if row.projection]

        columns: List[Any] = []
        booleans: List[str] = []
        for name in names:
            label = prefix + name.replace(".", LABEL_SEPARATOR)
            if name in self.rows:
                row = self.rows[name]
                if row.projection is None:
                    raise PipelineCompileError(
                        f"Lookup '{name}' has no Project stage; embed it field by field"
                    )
                nested_columns, nested_booleans = row.output_columns(
                    label + LABEL_SEPARATOR
                )
                columns.extend(nested_columns)
                booleans.extend(nested_booleans)
                continue
            if name in self.arrays:
                raise PipelineCompileError(
                    f"Lookup '{name}' must be unwound or reduced before projection"
                )
            columns.append(self.resolve(name).label(label))
            if self.is_boolean(name):
                booleans.append(label)
        return columns, booleans


class PipelineCompiler:
    """
    Compiles Pipeline objects against the ORM models

    Usage:
        compiler = PipelineCompiler()
        compiled = compiler.compile(pipeline)
        rows = await session.execute(compiled.statement)
    """

    def __init__(self, search_backend: Optional[TextSearchBackend] = None):
        self.search_backend = search_backend or SubstringSearchBackend()
        self._alias_counter = itertools.count(1)

    # ========================================================================
    # Public API
    # ========================================================================

    def compile(self, pipeline: Pipeline) -> CompiledQuery:
        """Full statement: filters, joins, computed fields, order, projection"""
        scope = self._build_scope(pipeline)
        logger.debug(f"🔧 Compiling {len(pipeline)}-stage pipeline on {pipeline.collection}")
        columns, booleans = scope.output_columns()
        stmt = self._from_clause(select(*columns), scope)
        stmt = stmt.where(*scope.where).order_by(*scope.order_by)
        return CompiledQuery(statement=stmt, boolean_labels=frozenset(booleans))

    def compile_count(self, pipeline: Pipeline) -> Select:
        """COUNT(*) over the membership-deciding stages only"""
        scope = self._build_scope(pipeline.for_count())
        stmt = self._from_clause(select(func.count()), scope)
        return stmt.where(*scope.where)

    # ========================================================================
    # Scope construction
    # ========================================================================

    def _build_scope(self, pipeline: Pipeline) -> _Scope:
        scope = _Scope(entity=self._model(pipeline.collection))
        for stage in pipeline:
            self._apply(scope, stage)
        return scope

    def _from_clause(self, stmt: Select, scope: _Scope) -> Select:
        stmt = stmt.select_from(scope.entity)
        for entity, onclause, isouter in scope.joins:
            stmt = stmt.join(entity, onclause, isouter=isouter)
        return stmt

    @staticmethod
    def _model(collection: str):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise PipelineCompileError(f"Unknown collection '{collection}'") from None

    def _apply(self, scope: _Scope, stage: Stage) -> None:
        if isinstance(stage, SearchText):
            columns = [scope.column(name) for name in stage.fields]
            scope.where.append(
                self.search_backend.clause(columns, stage.term, stage.index)
            )

        elif isinstance(stage, Match):
            scope.where.append(self._predicate(scope, stage.predicate))

        elif isinstance(stage, Lookup):
            entity = aliased(
                self._model(stage.collection),
                name=f"{stage.as_}_{next(self._alias_counter)}",
            )
            nested = _Scope(entity=entity)
            for sub_stage in stage.sub_pipeline:
                self._apply(nested, sub_stage)
            correlation = [
                nested.column(stage.foreign_key) == scope.resolve(stage.local_key),
                *nested.where,
            ]
            scope.arrays[stage.as_] = _ArrayBinding(entity, correlation, nested)

        elif isinstance(stage, Unwind):
            binding = scope.arrays.pop(stage.field, None)
            if binding is None:
                raise PipelineCompileError(f"Nothing to unwind at '{stage.field}'")
            scope.joins.append(
                (binding.entity, and_(*binding.correlation), stage.preserve_empty)
            )
            scope.joins.extend(binding.scope.joins)
            scope.rows[stage.field] = binding.scope

        elif isinstance(stage, AddComputedField):
            scope.computed[stage.name] = self._expression(scope, stage.expression)
            if isinstance(stage.expression, Contains):
                scope.booleans.add(stage.name)

        elif isinstance(stage, Sort):
            for key in stage.keys:
                column = scope.resolve(key.field)
                scope.order_by.append(
                    column.asc() if key.direction == SortDirection.ASC else column.desc()
                )

        elif isinstance(stage, Project):
            scope.projection = stage.fields

        else:
            raise PipelineCompileError(f"Unsupported stage {type(stage).__name__}")

    # ========================================================================
    # Predicates & expressions
    # ========================================================================

    def _predicate(self, scope: _Scope, predicate: Predicate):
        if isinstance(predicate, Eq):
            column = scope.resolve(predicate.field)
            if predicate.value is None:
                return column.is_(None)
            return column == predicate.value
        if isinstance(predicate, AnyOf):
            if not predicate.clauses:
                return false()
            return or_(*(self._predicate(scope, c) for c in predicate.clauses))
        if isinstance(predicate, AllOf):
            return and_(*(self._predicate(scope, c) for c in predicate.clauses))
        raise PipelineCompileError(f"Unsupported predicate {type(predicate).__name__}")

    def _array(self, scope: _Scope, name: str) -> _ArrayBinding:
        if name not in scope.arrays:
            raise PipelineCompileError(f"'{name}' is not a looked-up array")
        return scope.arrays[name]

    def _expression(self, scope: _Scope, expression: Expression):
        if isinstance(expression, Size):
            binding = self._array(scope, expression.array)
            return (
                select(func.count())
                .select_from(binding.entity)
                .where(*binding.correlation)
                .scalar_subquery()
            )

        if isinstance(expression, Contains):
            binding = self._array(scope, expression.array)
            if expression.value is None:
                return literal(False, Boolean)
            member = binding.scope.column(expression.field)
            return (
                select(literal_column("1"))
                .select_from(binding.entity)
                .where(*binding.correlation, member == expression.value)
                .exists()
            )

        raise PipelineCompileError(
            f"Unsupported expression {type(expression).__name__}"
        )
