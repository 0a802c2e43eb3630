"""
PostgreSQL 스키마 덤프 서비스.

라이브 DB의 구조 메타데이터(확장, 스키마, ENUM 타입, 테이블, 컬럼, 제약조건)를 조회하여
재실행 가능한 스키마 정의 문서로 출력한다.
DB 상태가 같으면 출력은 항상 바이트 단위로 동일해야 하므로,
순서가 없는 메타데이터(확장, ENUM, 제약조건, 인덱스, FK)는 모두 정렬 후 출력한다.

덤프 순서:
    1. 헤더 주석 + define do
    2. Extensions      : enable_extension (이름순, DB 레벨이므로 한 번만)
    3. Schemas         : create_schema (public 제외, 이름순)
    4. 스키마별 (덤프 대상 스키마 순서대로)
        4-1. ENUM Types : create_enum (타입명순, 라벨 순서는 유지)
        4-2. Tables     : TableEmitter 위임 (+ EXCLUDE / UNIQUE 제약조건 훅)
             테이블이 있었던 스키마 다음에만 빈 줄 구분자를 넣는다.
    5. end

이름 한정 규칙:
    덤프 대상 스키마가 2개 이상이면 테이블/ENUM 이름을 "schema.name"으로 출력하고,
    1개면 스키마 없이 출력한다.

사용처:
    - main.run() : 커넥션 생성 후 덤프 실행
"""

import io
from typing import Any, Callable, Dict, List, Optional, Sequence

import psycopg2.extensions

from config import (
    DEFAULT_SCHEMA,
    DUMP_HEADER,
    DUMP_SCHEMAS,
    IGNORE_TABLES,
    INDENT,
    LOG_TAG_INFO,
    LOG_TAG_OK,
    TABLE_INDENT,
)
from models.schema_objects        import INTEGER_TYPE, Column
from services.catalog             import PostgresCatalog
from services.formatting          import inspect, puts
from services.namespace_scope     import NamespaceScope
from services.namespace_selector  import select_dump_schemas
from services.table_emitter       import ColumnPolicy, TableEmitter


# 로그 콜백 타입 alias
LogCallback = Callable[[str, str], None]


class SchemaDumper(ColumnPolicy):
    """
    PostgreSQL 방언 스키마 덤퍼.

    TableEmitter의 ColumnPolicy 확장 지점을 구현하여
    배열/생성/ENUM 컬럼 옵션, serial PK 판별, EXCLUDE/UNIQUE 제약조건 출력을 담당한다.

    덤프 대상 스키마 목록은 생성 시 한 번 계산되며 덤프 중 변하지 않는다.

    내부 상태:
        _catalog      : 메타데이터 제공자 (PostgresCatalog 또는 동일 인터페이스)
        _dump_schemas : 덤프 대상 스키마 목록 (순서 보장)
        _emitter      : 범용 테이블 덤프 (이 객체를 policy로 사용)
        _log          : 로그 콜백
    """

    def __init__(
        self,
        catalog,
        dump_schemas:  Optional[str]         = DUMP_SCHEMAS,
        ignore_tables: Sequence[str]         = IGNORE_TABLES,
        log:           Optional[LogCallback] = None,
    ):
        """
        @param catalog        메타데이터 제공자
        @param dump_schemas   스키마 설정값 (namespace_selector 참조)
        @param ignore_tables  덤프에서 제외할 테이블명
        @param log            로그 콜백 (tag, message)
        """
        self._log          = log or (lambda tag, msg: None)
        self._catalog      = catalog
        self._dump_schemas = select_dump_schemas(dump_schemas, catalog, self._log)
        self._emitter      = TableEmitter(catalog, self, ignore_tables, self._log)

    @classmethod
    def from_connection(
        cls,
        conn: psycopg2.extensions.connection,
        **kwargs,
    ) -> "SchemaDumper":
        """
        psycopg2 커넥션으로 덤퍼를 생성한다.

        @example
            dumper = SchemaDumper.from_connection(conn, dump_schemas="public, sales")
            print(dumper.dump_to_string())
        """
        return cls(PostgresCatalog(conn), **kwargs)

    @property
    def dump_schemas(self) -> List[str]:
        return list(self._dump_schemas)

    # ==================================================================
    # 전체 덤프
    # ==================================================================

    def dump(self, stream):
        """
        전체 스키마 정의를 스트림에 출력한다.

        덤프 도중 오류가 발생하면 이미 기록된 내용은 그대로 둔 채 예외를 전파한다.

        @param stream  출력 스트림 (write() 지원, 추가 전용)
        @returns       전달받은 stream
        """
        self._log(
            LOG_TAG_INFO,
            f"대상 스키마 {len(self._dump_schemas)}개: {', '.join(self._dump_schemas)}",
        )

        self.header(stream)
        self.extensions(stream)
        self.schemas(stream)

        previous_schema_had_tables = False

        def body(scope: NamespaceScope) -> None:
            nonlocal previous_schema_had_tables
            self.types(stream, scope)
            if previous_schema_had_tables:
                puts(stream)
            previous_schema_had_tables = self._emitter.tables(stream, scope)

        self.within_each_schema(body)
        self.trailer(stream)

        self._log(LOG_TAG_OK, "스키마 덤프 완료")
        return stream

    def dump_to_string(self) -> str:
        return self.dump(io.StringIO()).getvalue()

    def within_each_schema(self, body: Callable[[NamespaceScope], Any]) -> None:
        """
        덤프 대상 스키마를 순서대로 순회하며 body(scope)를 호출한다.

        각 스키마마다 NamespaceScope가 search_path를 전환/복원하므로,
        body가 예외를 던져도 search_path 복원이 끝난 뒤에 예외가 전파된다.
        """
        qualify = len(self._dump_schemas) > 1
        for schema_name in self._dump_schemas:
            with NamespaceScope(self._catalog, schema_name, qualify) as scope:
                self._log(LOG_TAG_INFO, f"[{schema_name}] 스키마 덤프 중")
                body(scope)

    def relation_name(self, name: str, scope: NamespaceScope) -> str:
        if scope.qualify:
            return f"{scope.schema_name}.{name}"
        return name

    # ==================================================================
    # 헤더 / 트레일러
    # ==================================================================

    def header(self, stream) -> None:
        for line in DUMP_HEADER:
            puts(stream, line)
        puts(stream)
        puts(stream, "define do")

    def trailer(self, stream) -> None:
        puts(stream, "end")

    # ==================================================================
    # Extensions / Schemas / ENUM Types
    # ==================================================================

    def extensions(self, stream) -> None:
        """
        활성화된 확장을 이름순으로 출력한다. 확장이 없으면 아무것도 출력하지 않는다.
        """
        extensions = self._catalog.extensions()
        if not extensions:
            return
        puts(stream, f"{INDENT}# These are extensions that must be enabled in order to support this database")
        for extension in sorted(extensions):
            puts(stream, f"{INDENT}enable_extension {inspect(extension)}")
        puts(stream)

    def schemas(self, stream) -> None:
        """
        public을 제외한 덤프 대상 스키마의 create_schema 구문을 이름순으로 출력한다.

        public만 덤프하는 경우 빈 줄도 출력하지 않는다.
        """
        schema_names = [name for name in self._dump_schemas if name != DEFAULT_SCHEMA]
        if not schema_names:
            return
        for name in sorted(schema_names):
            puts(stream, f"{INDENT}create_schema {inspect(name)}")
        puts(stream)

    def types(self, stream, scope: NamespaceScope) -> None:
        """
        현재 스키마의 ENUM 타입을 타입명순으로 출력한다.

        라벨 순서는 의미가 있으므로 정렬하지 않는다.
        """
        types = self._catalog.enum_types()
        if not types:
            return
        puts(stream, f"{INDENT}# Custom types defined in this database.")
        puts(stream, f"{INDENT}# Note that some types may not work with other database engines. Be careful if changing database.")
        for name in sorted(types):
            labels = list(types[name])
            puts(stream, f"{INDENT}create_enum {inspect(self.relation_name(name, scope))}, {inspect(labels)}")

    # ==================================================================
    # 테이블 내 제약조건 (TableEmitter 훅)
    # ==================================================================

    def exclusion_constraints_in_create(self, table_name: str, stream) -> None:
        """
        EXCLUDE 제약조건을 출력한다.

        인자 순서: expression, where:, using:, deferrable:, name:
        완성된 구문 문자열 기준으로 정렬하여 한 번에 기록한다.
        """
        constraints = self._catalog.exclusion_constraints(table_name)
        if not constraints:
            return

        statements = []
        for constraint in constraints:
            parts = [inspect(constraint.expression)]
            if constraint.where:
                parts.append(f"where: {inspect(constraint.where)}")
            if constraint.using:
                parts.append(f"using: {inspect(constraint.using)}")
            if constraint.deferrable:
                parts.append(f"deferrable: {inspect(constraint.deferrable)}")
            if constraint.export_name:
                parts.append(f"name: {inspect(constraint.name)}")
            statements.append(f"{TABLE_INDENT}t.exclusion_constraint {', '.join(parts)}")

        puts(stream, "\n".join(sorted(statements)))

    def unique_constraints_in_create(self, table_name: str, stream) -> None:
        """
        UNIQUE 제약조건을 출력한다.

        인자 순서: 컬럼 목록, nulls_not_distinct:, deferrable:, name:
        """
        constraints = self._catalog.unique_constraints(table_name)
        if not constraints:
            return

        statements = []
        for constraint in constraints:
            parts = [inspect(constraint.column)]
            if constraint.nulls_not_distinct:
                parts.append("nulls_not_distinct: true")
            if constraint.deferrable:
                parts.append(f"deferrable: {inspect(constraint.deferrable)}")
            if constraint.export_name:
                parts.append(f"name: {inspect(constraint.name)}")
            statements.append(f"{TABLE_INDENT}t.unique_constraint {', '.join(parts)}")

        puts(stream, "\n".join(sorted(statements)))

    # ==================================================================
    # 컬럼 옵션 / PK 판별 (TableEmitter 훅)
    # ==================================================================

    def supports_virtual_columns(self) -> bool:
        return self._catalog.supports_virtual_columns()

    def decorate_column_options(self, column: Column, spec: Dict[str, Any]) -> Dict[str, Any]:
        """
        기본 컬럼 옵션에 PostgreSQL 전용 옵션을 추가한다.

            - 배열 컬럼   : array: true
            - 생성 컬럼   : as: <생성식>, stored: true, 그리고 type:을 맨 앞에 둔다
            - ENUM 컬럼   : enum_type: <실제 저장 타입명>
        """
        if column.array:
            spec["array"] = True

        if self.supports_virtual_columns() and column.virtual:
            spec["as"]     = self.extract_expression_for_virtual_column(column)
            spec["stored"] = True
            spec = {"type": self.schema_type(column), **spec}

        if column.enum:
            spec["enum_type"] = column.sql_type

        return spec

    def extract_expression_for_virtual_column(self, column: Column) -> Optional[str]:
        return column.default_function

    def schema_type(self, column: Column) -> str:
        """serial 컬럼은 저장 폭이 8바이트면 bigserial, 아니면 serial로 출력한다."""
        if not column.serial:
            return super().schema_type(column)
        if column.bigint:
            return "bigserial"
        return "serial"

    def schema_expression(self, column: Column) -> Optional[str]:
        # serial의 nextval() 기본값은 타입에 내포되어 있으므로 출력하지 않는다.
        if column.serial:
            return None
        return super().schema_expression(column)

    def default_primary_key(self, column: Column) -> bool:
        return self.schema_type(column) == "bigserial"

    def explicit_primary_key_default(self, column: Column) -> bool:
        return column.type == "uuid" or (column.type == INTEGER_TYPE and not column.serial)
