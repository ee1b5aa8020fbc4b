"""
DevCamper Backend — Advanced Results (filter / select / sort / paginate)
==========================================================================

What:  The shared query layer behind the list endpoints
       (GET /bootcamps, GET /courses).
How:   Query-string parameters are parsed into SQLAlchemy clauses against a
       per-resource whitelist, then applied to a caller-supplied SELECT.

Query string grammar:
    select=name,description          fields to keep in each item
    sort=-average_cost,name          comma list, '-' prefix = descending
                                     (default: -created_at)
    page=2&limit=10                  1-based page, limit capped at MAX_PAGE_LIMIT
    housing=true                     equality filter
    average_cost[lte]=10000          gt | gte | lt | lte
    minimum_skill[in]=beginner,advanced

Unknown fields or operators and values that do not cast to the column's
type raise ValidationError (400).
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.config import settings
from devcamper.exceptions import ValidationError

logger = logging.getLogger(__name__)

RESERVED_PARAMS = {"select", "sort", "page", "limit"}

FILTER_KEY = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?:\[(?P<op>[a-z]+)\])?$")

COMPARATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "eq": lambda col, v: col == v,
    "gt": lambda col, v: col > v,
    "gte": lambda col, v: col >= v,
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
    "in": lambda col, v: col.in_(v),
}

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def _cast(raw: str, kind: type) -> Any:
    if kind is bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(raw)
    if kind is uuid.UUID:
        return uuid.UUID(raw)
    return kind(raw)


@dataclass
class ResourceQuery:
    """Whitelist describing what a list endpoint may filter, sort and select on."""
    model: Any
    filterable: Dict[str, type]
    selectable: Set[str]
    default_sort: str = "-created_at"


@dataclass
class QueryOptions:
    select: Optional[List[str]] = None
    conditions: List[Any] = field(default_factory=list)
    order_by: List[Any] = field(default_factory=list)
    page: int = 1
    limit: int = 25


@dataclass
class PageResult:
    rows: List[Any]
    total: int
    page: int
    limit: int

    @property
    def pagination(self) -> Dict[str, Dict[str, int]]:
        start = (self.page - 1) * self.limit
        end = self.page * self.limit
        links: Dict[str, Dict[str, int]] = {}
        if end < self.total:
            links["next"] = {"page": self.page + 1, "limit": self.limit}
        if start > 0:
            links["prev"] = {"page": self.page - 1, "limit": self.limit}
        return links


class QueryService:
    def parse(self, resource: ResourceQuery, params: Mapping[str, str]) -> QueryOptions:
        """Turn raw query parameters into clauses for `resource`."""
        options = QueryOptions(
            select=self._parse_select(resource, params.get("select")),
            page=self._parse_positive_int(params.get("page"), "page", 1),
            limit=min(
                self._parse_positive_int(params.get("limit"), "limit", settings.default_page_limit),
                settings.max_page_limit,
            ),
        )
        options.order_by = self._parse_sort(resource, params.get("sort") or resource.default_sort)

        for key, raw in params.items():
            if key in RESERVED_PARAMS:
                continue
            options.conditions.append(self._parse_filter(resource, key, raw))

        return options

    async def paginate(
        self,
        db: AsyncSession,
        statement: Select,
        options: QueryOptions,
    ) -> PageResult:
        """
        Run `statement` with the parsed filters applied.

        Returns rows as returned by `Result.all()`; callers unpack them
        (one entity per row, or entity + joined entity).
        """
        filtered = statement.where(*options.conditions)

        count_result = await db.execute(
            select(func.count()).select_from(filtered.order_by(None).subquery())
        )
        total = count_result.scalar() or 0

        page_stmt = (
            filtered.order_by(*options.order_by)
            .offset((options.page - 1) * options.limit)
            .limit(options.limit)
        )
        result = await db.execute(page_stmt)
        rows = list(result.all())

        return PageResult(
            rows=rows,
            total=total,
            page=options.page,
            limit=options.limit,
        )

    # ── Parsing helpers ───────────────────────────────────────────────────

    @staticmethod
    def _parse_positive_int(raw: Optional[str], name: str, default: int) -> int:
        if raw is None or raw == "":
            return default
        try:
            value = int(raw)
        except ValueError:
            raise ValidationError(message=f"'{name}' must be an integer", field=name)
        if value < 1:
            raise ValidationError(message=f"'{name}' must be at least 1", field=name)
        return value

    @staticmethod
    def _split(raw: str) -> List[str]:
        return [part.strip() for part in raw.split(",") if part.strip()]

    def _parse_select(self, resource: ResourceQuery, raw: Optional[str]) -> Optional[List[str]]:
        if not raw:
            return None
        fields = self._split(raw)
        unknown = [f for f in fields if f not in resource.selectable]
        if unknown:
            raise ValidationError(
                message=f"Cannot select unknown field(s): {', '.join(unknown)}",
                field="select",
            )
        return fields

    def _parse_sort(self, resource: ResourceQuery, raw: str) -> List[Any]:
        sortable: Sequence[str] = list(resource.filterable) + ["created_at"]
        clauses = []
        for item in self._split(raw):
            descending = item.startswith("-")
            name = item.lstrip("-")
            if name not in sortable:
                raise ValidationError(message=f"Cannot sort by '{name}'", field="sort")
            column = getattr(resource.model, name)
            clauses.append(column.desc() if descending else column.asc())
        # Stable ordering across pages
        clauses.append(resource.model.id.asc())
        return clauses

    def _parse_filter(self, resource: ResourceQuery, key: str, raw: str) -> Any:
        match = FILTER_KEY.match(key)
        if not match or match.group("field") not in resource.filterable:
            raise ValidationError(message=f"Cannot filter by '{key}'", field=key)

        name = match.group("field")
        op = match.group("op") or "eq"
        if op not in COMPARATORS:
            raise ValidationError(message=f"Unknown filter operator '{op}'", field=key)

        kind = resource.filterable[name]
        try:
            if op == "in":
                value: Any = [_cast(v, kind) for v in self._split(raw)]
            else:
                value = _cast(raw, kind)
        except ValueError:
            raise ValidationError(
                message=f"Invalid value '{raw}' for '{name}'",
                field=key,
            )

        column = getattr(resource.model, name)
        return COMPARATORS[op](column, value)


query_service = QueryService()
