"""
PostgreSQL Schema Dumper - pytest Configuration and Fixtures

DB 접속 없이 덤프 로직을 검증하기 위한 메모리 기반 메타데이터 제공자(FakeCatalog)와
자주 쓰는 컬럼 정의 헬퍼를 제공한다.

FakeCatalog는 PostgresCatalog와 동일한 인터페이스를 가지며,
search_path가 가리키는 스키마의 객체만 조회되도록 동작한다.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest

from models.schema_objects import (
    CheckConstraint,
    Column,
    ExclusionConstraint,
    ForeignKey,
    Index,
    UniqueConstraint,
)


# ============================================================================
# Fake Metadata Provider
# ============================================================================

@dataclass
class FakeTable:
    columns:               List[Column]              = field(default_factory=list)
    primary_keys:          List[str]                 = field(default_factory=list)
    indexes:               List[Index]               = field(default_factory=list)
    check_constraints:     List[CheckConstraint]     = field(default_factory=list)
    exclusion_constraints: List[ExclusionConstraint] = field(default_factory=list)
    unique_constraints:    List[UniqueConstraint]    = field(default_factory=list)
    foreign_keys:          List[ForeignKey]          = field(default_factory=list)


@dataclass
class FakeSchema:
    enums:  Dict[str, List[str]]  = field(default_factory=dict)
    tables: Dict[str, FakeTable]  = field(default_factory=dict)


class FakeCatalog:
    """
    메모리 기반 메타데이터 제공자.

    @param schemas          스키마명 -> FakeSchema
    @param extensions       활성 확장 목록
    @param search_path      초기 search_path 원문
    @param current_schemas  current_schemas() 반환값 (search_path 해석 결과)
    @param virtual_columns  생성 컬럼 지원 여부
    @param failing_schema   이 스키마에서 tables() 조회 시 RuntimeError 발생
    """

    def __init__(
        self,
        schemas:         Optional[Dict[str, FakeSchema]] = None,
        extensions:      Optional[List[str]]             = None,
        search_path:     str                             = '"$user", public',
        current_schemas: Optional[List[str]]             = None,
        virtual_columns: bool                            = True,
        failing_schema:  Optional[str]                   = None,
    ):
        self.schemas          = schemas if schemas is not None else {"public": FakeSchema()}
        self._extensions      = extensions or []
        self._search_path     = search_path
        self._current_schemas = current_schemas if current_schemas is not None else ["public"]
        self._virtual_columns = virtual_columns
        self._failing_schema  = failing_schema
        self.search_path_history: List[str] = []

    # -- DB 레벨 -------------------------------------------------------------

    def extensions(self) -> List[str]:
        return list(self._extensions)

    def schema_names(self) -> List[str]:
        return sorted(self.schemas)

    def current_schemas(self) -> List[str]:
        return list(self._current_schemas)

    def supports_virtual_columns(self) -> bool:
        return self._virtual_columns

    # -- search_path ---------------------------------------------------------

    @property
    def schema_search_path(self) -> str:
        return self._search_path

    @schema_search_path.setter
    def schema_search_path(self, value: str) -> None:
        self.search_path_history.append(value)
        self._search_path = value

    def use_schema(self, schema: str) -> None:
        self.search_path_history.append(schema)
        self._search_path = schema

    def _current(self) -> FakeSchema:
        return self.schemas.get(self._search_path, FakeSchema())

    # -- 현재 스키마 범위 -----------------------------------------------------

    def enum_types(self) -> Dict[str, List[str]]:
        return dict(self._current().enums)

    def tables(self) -> List[str]:
        if self._failing_schema is not None and self._search_path == self._failing_schema:
            raise RuntimeError(f"tables() failed in {self._search_path}")
        return list(self._current().tables)

    def _table(self, name: str) -> FakeTable:
        return self._current().tables[name]

    def columns(self, table_name):
        return list(self._table(table_name).columns)

    def primary_keys(self, table_name):
        return list(self._table(table_name).primary_keys)

    def indexes(self, table_name):
        return list(self._table(table_name).indexes)

    def check_constraints(self, table_name):
        return list(self._table(table_name).check_constraints)

    def exclusion_constraints(self, table_name):
        return list(self._table(table_name).exclusion_constraints)

    def unique_constraints(self, table_name):
        return list(self._table(table_name).unique_constraints)

    def foreign_keys(self, table_name):
        return list(self._table(table_name).foreign_keys)


# ============================================================================
# Column Helpers
# ============================================================================

def bigserial_id(name: str = "id") -> Column:
    return Column(
        name             = name,
        sql_type         = "bigint",
        type             = "integer",
        null             = False,
        default_function = f"nextval('widgets_{name}_seq'::regclass)",
        serial           = True,
        limit            = 8,
    )


def string_column(name: str, null: bool = True, limit: Optional[int] = None) -> Column:
    sql_type = f"character varying({limit})" if limit else "character varying"
    return Column(name=name, sql_type=sql_type, type="string", null=null, limit=limit)


def simple_table(*columns: Column, **kwargs) -> FakeTable:
    """bigserial id PK + 주어진 컬럼을 가진 테이블."""
    return FakeTable(columns=[bigserial_id(), *columns], primary_keys=["id"], **kwargs)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def log_records():
    """로그 콜백 호출 기록 (tag, message) 리스트."""
    return []


@pytest.fixture
def log(log_records):
    def _log(tag, message):
        log_records.append((tag, message))
    return _log


@pytest.fixture
def public_catalog():
    """public 스키마에 widgets 테이블 하나만 있는 카탈로그."""
    return FakeCatalog(schemas={
        "public": FakeSchema(tables={"widgets": simple_table(string_column("name", null=False))}),
    })
