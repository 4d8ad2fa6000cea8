from sqlalchemy.dialects import sqlite

from modules.catalog.models import Design
from modules.catalog.query import build_design_query, parse_bool, normalize_page


def _sql(dq, literal=False):
    kwargs = {"compile_kwargs": {"literal_binds": True}} if literal else {}
    return str(dq.whereclause.compile(dialect=sqlite.dialect(), **kwargs))


def _order_sql(dq):
    return [str(c.compile(dialect=sqlite.dialect())) for c in dq.order_by]


def test_non_admin_always_filtered_to_active():
    dq = build_design_query({"category": "sarees"}, is_admin=False)
    sql = _sql(dq, literal=True)
    assert "designs.status = 'active'" in sql
    assert "designs.category = 'sarees'" in sql


def test_non_admin_cannot_request_other_status():
    dq = build_design_query({"status": "draft"}, is_admin=False)
    sql = _sql(dq, literal=True)
    assert "'active'" in sql
    assert "'draft'" not in sql


def test_admin_without_status_sees_everything():
    dq = build_design_query({"category": "sarees"}, is_admin=True)
    assert "status" not in _sql(dq)


def test_admin_status_filter_only_when_valid():
    assert "status" in _sql(build_design_query({"status": "draft"}, is_admin=True))
    assert "status" not in _sql(build_design_query({"status": "bogus"}, is_admin=True))


def test_filter_values_are_bound_parameters():
    evil = "x' OR '1'='1"
    dq = build_design_query({"colour": evil, "q": evil})
    sql = _sql(dq)
    assert evil not in sql
    assert "?" in sql


def test_unknown_filters_ignored():
    dq = build_design_query({"password_hash": "x", "1=1; --": "y"})
    assert len(dq.conditions) == 1  # status only


def test_designer_and_collection_map_to_columns():
    dq = build_design_query({"designer": "Asha", "collection": "Spring"})
    sql = _sql(dq, literal=True)
    assert "designs.designer_name = 'Asha'" in sql
    assert "designs.collection_name = 'Spring'" in sql


def test_search_spans_text_columns():
    dq = build_design_query({"q": "silk"})
    sql = _sql(dq).lower()
    for column in ("title", "description", "tags", "design_number"):
        assert f"designs.{column}" in sql
    assert " or " in sql


def test_search_escapes_like_wildcards():
    dq = build_design_query({"q": "100%_off"})
    params = dq.whereclause.compile(dialect=sqlite.dialect()).params
    assert any(v == "%100\\%\\_off%" for v in params.values())


def test_featured_parsed_as_bool():
    assert "featured" in _sql(build_design_query({"featured": "true"}))
    assert "featured" not in _sql(build_design_query({"featured": "maybe"}))


def test_unknown_sort_falls_back_to_created_at_desc():
    dq = build_design_query({}, sort_by="1; DROP TABLE designs", sort_order="sideways")
    assert dq.sort_by == "created_at"
    assert dq.sort_order == "desc"
    order = _order_sql(dq)
    assert order[0] == "designs.created_at DESC"
    assert all("DROP" not in o for o in order)


def test_sort_includes_id_tiebreaker():
    dq = build_design_query({}, sort_by="view_count", sort_order="asc")
    assert _order_sql(dq) == ["designs.view_count ASC", "designs.id ASC"]


def test_pagination_bounds():
    dq = build_design_query({}, page=3, per_page=5)
    assert (dq.page, dq.limit, dq.offset) == (3, 5, 10)
    assert normalize_page(0, 0) == (1, 1)
    assert normalize_page("-4", "100000", max_page_size=100) == (1, 100)
    assert normalize_page("abc", None)[0] == 1


def test_parse_bool():
    assert parse_bool("YES") is True
    assert parse_bool("0") is False
    assert parse_bool(None) is None
    assert parse_bool("perhaps") is None


def test_whereclause_usable_in_query(db):
    dq = build_design_query({"category": "sarees"}, page=1, per_page=10)
    assert dq.apply(db.query(Design)).all() == []
