"""
DevCamper Backend — Advanced Results Tests
============================================

What:  Query-string parsing (filters, select, sort, page/limit) and the
       pagination links, plus paginate() against a real SQLite database.
"""

import pytest
from sqlalchemy import select

from devcamper.config import settings
from devcamper.exceptions import ValidationError
from devcamper.models.bootcamp import Bootcamp
from devcamper.services.bootcamp_service import BOOTCAMP_QUERY
from devcamper.services.query_service import PageResult, QueryService


def _sql(clause) -> str:
    return str(clause.compile(compile_kwargs={"literal_binds": True}))


class TestParse:
    def setup_method(self):
        self.service = QueryService()

    def test_defaults(self):
        options = self.service.parse(BOOTCAMP_QUERY, {})

        assert options.page == 1
        assert options.limit == settings.default_page_limit
        assert options.select is None
        assert options.conditions == []
        # -created_at plus the id tiebreaker
        assert len(options.order_by) == 2
        assert "DESC" in _sql(options.order_by[0])

    def test_equality_and_comparison_filters(self):
        options = self.service.parse(
            BOOTCAMP_QUERY, {"housing": "true", "average_cost[lte]": "10000"}
        )

        rendered = [_sql(c) for c in options.conditions]
        assert "bootcamps.housing = 1" in rendered or "bootcamps.housing = true" in rendered
        assert "bootcamps.average_cost <= 10000" in rendered

    def test_in_filter_splits_values(self):
        options = self.service.parse(BOOTCAMP_QUERY, {"city[in]": "Boston,Lowell"})
        rendered = _sql(options.conditions[0])
        assert "IN" in rendered
        assert "'Boston'" in rendered and "'Lowell'" in rendered

    def test_limit_capped(self):
        options = self.service.parse(BOOTCAMP_QUERY, {"limit": "100000"})
        assert options.limit == settings.max_page_limit

    def test_select_fields_kept_in_order(self):
        options = self.service.parse(BOOTCAMP_QUERY, {"select": "name, description"})
        assert options.select == ["name", "description"]

    @pytest.mark.parametrize(
        "params",
        [
            {"password": "x"},
            {"housing[regex]": "x"},
            {"average_cost": "cheap"},
            {"housing": "maybe"},
            {"select": "name,secret"},
            {"sort": "-secret"},
            {"page": "0"},
            {"limit": "ten"},
        ],
    )
    def test_bad_parameters_rejected(self, params):
        with pytest.raises(ValidationError):
            self.service.parse(BOOTCAMP_QUERY, params)


class TestPaginationLinks:
    def test_first_page_has_only_next(self):
        page = PageResult(rows=[], total=5, page=1, limit=2)
        assert page.pagination == {"next": {"page": 2, "limit": 2}}

    def test_middle_page_has_both(self):
        page = PageResult(rows=[], total=5, page=2, limit=2)
        assert page.pagination == {
            "next": {"page": 3, "limit": 2},
            "prev": {"page": 1, "limit": 2},
        }

    def test_last_page_has_only_prev(self):
        page = PageResult(rows=[], total=5, page=3, limit=2)
        assert page.pagination == {"prev": {"page": 2, "limit": 2}}

    def test_single_page_has_none(self):
        assert PageResult(rows=[], total=2, page=1, limit=25).pagination == {}


class TestPaginate:
    @pytest.mark.asyncio
    async def test_filters_sorts_and_pages(self, db_session, admin, make_bootcamp):
        for cost in (5000, 9000, 12000, 7000):
            await make_bootcamp(admin, average_cost=cost)

        service = QueryService()
        options = service.parse(
            BOOTCAMP_QUERY,
            {"average_cost[lt]": "10000", "sort": "average_cost", "limit": "2", "page": "1"},
        )
        page = await service.paginate(db_session, select(Bootcamp), options)

        assert page.total == 3
        assert [row[0].average_cost for row in page.rows] == [5000, 7000]
        assert page.pagination == {"next": {"page": 2, "limit": 2}}

        options.page = 2
        page = await service.paginate(db_session, select(Bootcamp), options)
        assert [row[0].average_cost for row in page.rows] == [9000]
