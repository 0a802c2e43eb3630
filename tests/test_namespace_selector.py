"""
PostgreSQL Schema Dumper - Dump Schema Selection / Namespace Scope Tests
"""

import pytest

from config import SCHEMA_SEARCH_PATH
from services.namespace_scope import NamespaceScope
from services.namespace_selector import select_dump_schemas

from conftest import FakeCatalog, FakeSchema


@pytest.fixture
def catalog():
    return FakeCatalog(
        schemas={"public": FakeSchema(), "sales": FakeSchema(), "ops": FakeSchema()},
        current_schemas=["sales", "public"],
    )


class TestSelectDumpSchemas:
    """덤프 대상 스키마 목록 계산."""

    def test_search_path_setting_uses_current_schemas(self, catalog):
        assert select_dump_schemas(SCHEMA_SEARCH_PATH, catalog) == ["sales", "public"]

    def test_empty_setting_uses_all_schemas(self, catalog):
        assert select_dump_schemas(None, catalog) == ["ops", "public", "sales"]
        assert select_dump_schemas("", catalog) == ["ops", "public", "sales"]

    def test_explicit_list_keeps_configured_order(self, catalog):
        assert select_dump_schemas(" sales ,public", catalog) == ["sales", "public"]

    def test_duplicates_are_removed(self, catalog):
        assert select_dump_schemas("sales, public, sales", catalog) == ["sales", "public"]

    def test_missing_schema_is_dropped_with_warning(self, catalog, log, log_records):
        result = select_dump_schemas("sales, missing, public", catalog, log)

        assert result == ["sales", "public"]
        assert log_records == [("WARN", "존재하지 않는 스키마 제외: missing")]

    def test_all_missing_yields_empty_list(self, catalog):
        assert select_dump_schemas("nope, nada", catalog) == []


class TestNamespaceScope:
    """search_path 전환과 복원."""

    def test_switches_and_restores_search_path(self, catalog):
        with NamespaceScope(catalog, "sales", qualify=True) as scope:
            assert scope.active
            assert scope.schema_name == "sales"
            assert catalog.schema_search_path == "sales"

        assert not scope.active
        assert scope.schema_name is None
        assert catalog.schema_search_path == '"$user", public'

    def test_restores_on_exception(self, catalog):
        scope = NamespaceScope(catalog, "ops", qualify=False)

        with pytest.raises(ValueError):
            with scope:
                raise ValueError("boom")

        assert scope.schema_name is None
        assert catalog.schema_search_path == '"$user", public'

    def test_failed_switch_restores_previous_path(self):
        class BrokenCatalog(FakeCatalog):
            def use_schema(self, schema):
                raise RuntimeError("permission denied")

        catalog = BrokenCatalog(search_path="public")
        scope   = NamespaceScope(catalog, "sales", qualify=True)

        with pytest.raises(RuntimeError):
            scope.__enter__()

        assert scope.schema_name is None
        assert catalog.search_path_history == ["public"]
