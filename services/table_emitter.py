"""
범용 테이블 덤프 (DB 방언 비의존).

한 스키마의 테이블 목록을 create_table 블록으로 출력한다.
방언별 차이(컬럼 옵션 장식, PK 타입 판별, 기본값 생략, 이름 한정, 방언 전용 제약조건)는
ColumnPolicy 확장 지점을 통해 방언 덤퍼(SchemaDumper)에 위임한다.

출력 구조 (스키마 하나):
    create_table "a", force: "cascade" do |t|
      t.string "name", null: false
      t.index ["name"], name: "index_a_on_name", unique: true
      t.check_constraint ...
      t.exclusion_constraint ...     (ColumnPolicy 훅)
      t.unique_constraint ...        (ColumnPolicy 훅)
    end
    (빈 줄)
    create_table "b", ... do |t|
    end
    (빈 줄)
    add_foreign_key "b", "a", column: "a_id"

FOREIGN KEY는 모든 테이블 블록 이후에 출력한다.
(테이블 간 순환 참조가 있어도 로드 가능하도록)
"""

import io
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from config import INDENT, LOG_TAG_INFO, TABLE_INDENT
from models.schema_objects import INTEGER_TYPE, CheckConstraint, Column, ForeignKey, Index
from services.formatting   import format_options, inspect, puts


# 로그 콜백 타입 alias
LogCallback = Callable[[str, str], None]

# t.<type> "name" 형태로 출력 가능한 논리 타입.
# 이 외의 타입은 t.column "name", "<sql_type>" 형태로 출력한다.
NATIVE_TYPES = frozenset([
    "bigint", "bigserial", "binary", "bit", "bit_varying", "boolean", "box",
    "cidr", "circle", "citext", "date", "daterange", "datetime", "decimal",
    "enum", "float", "hstore", "inet", "int4range", "int8range", "integer",
    "interval", "json", "jsonb", "line", "lseg", "ltree", "macaddr", "money",
    "numrange", "oid", "path", "point", "polygon", "serial", "string", "text",
    "time", "timestamptz", "timetz", "tsrange", "tstzrange", "tsvector", "uuid",
    "virtual", "xml",
])


class ColumnPolicy:
    """
    TableEmitter가 호출하는 방언별 확장 지점과 그 기본 구현.

    방언 덤퍼는 이 클래스를 상속하여 필요한 지점만 재정의하고,
    TableEmitter 생성 시 자기 자신을 policy로 전달한다.

    확장 지점:
        relation_name()                  : 테이블/타입 이름 한정
        schema_type()                    : 컬럼의 덤프 타입 결정
        schema_expression()              : 함수 기본값 출력 여부/내용
        decorate_column_options()        : 기본 컬럼 옵션 장식
        default_primary_key()            : 생략 가능한 기본 PK인지
        explicit_primary_key_default()   : PK에 default: null 명시가 필요한지
        exclusion_constraints_in_create(): 테이블 블록 내 EXCLUDE 제약조건
        unique_constraints_in_create()   : 테이블 블록 내 UNIQUE 제약조건
    """

    def supports_virtual_columns(self) -> bool:
        return False

    def relation_name(self, name: str, scope) -> str:
        return name

    def schema_type(self, column: Column) -> str:
        if column.bigint:
            return "bigint"
        return column.type

    def schema_expression(self, column: Column) -> Optional[str]:
        return column.default_function

    def decorate_column_options(self, column: Column, spec: Dict[str, Any]) -> Dict[str, Any]:
        return spec

    def default_primary_key(self, column: Column) -> bool:
        return self.schema_type(column) == "bigint"

    def explicit_primary_key_default(self, column: Column) -> bool:
        return False

    def exclusion_constraints_in_create(self, table_name: str, stream) -> None:
        pass

    def unique_constraints_in_create(self, table_name: str, stream) -> None:
        pass


class TableEmitter:
    """
    스키마 하나의 테이블/인덱스/CHECK/FOREIGN KEY 덤프를 수행한다.

    내부 상태:
        _catalog       : 메타데이터 제공자 (현재 search_path 기준으로 조회)
        _policy        : 방언별 확장 지점 (ColumnPolicy)
        _ignore_tables : 덤프에서 제외할 테이블명 집합
        _log           : 로그 콜백
    """

    def __init__(
        self,
        catalog,
        policy:        ColumnPolicy,
        ignore_tables: Sequence[str]         = (),
        log:           Optional[LogCallback] = None,
    ):
        self._catalog       = catalog
        self._policy        = policy
        self._ignore_tables = set(ignore_tables)
        self._log           = log or (lambda tag, msg: None)

    # ==================================================================
    # 스키마 단위
    # ==================================================================

    def tables(self, stream, scope) -> bool:
        """
        현재 스키마의 모든 테이블과 FOREIGN KEY를 출력한다.

        테이블 블록 사이에만 빈 줄을 넣고, 마지막 블록 뒤에는 넣지 않는다.
        FOREIGN KEY가 있으면 빈 줄 하나 뒤에 모아서 출력한다.

        @param stream  출력 스트림 (write() 지원)
        @param scope   활성 NamespaceScope
        @returns       이 스키마에 테이블이 하나라도 있었는지 (제외 목록 적용 전 기준)
        """
        all_tables  = self._catalog.tables()
        table_names = sorted(name for name in all_tables if name not in self._ignore_tables)

        for index, table_name in enumerate(table_names):
            self.table(table_name, stream, scope)
            if index < len(table_names) - 1:
                puts(stream)

        foreign_keys_stream = io.StringIO()
        for table_name in table_names:
            self.foreign_keys(table_name, foreign_keys_stream, scope)

        foreign_keys_text = foreign_keys_stream.getvalue()
        if foreign_keys_text:
            puts(stream)
            stream.write(foreign_keys_text)

        return len(all_tables) > 0

    # ==================================================================
    # 테이블 단위
    # ==================================================================

    def table(self, table_name: str, stream, scope) -> None:
        """
        단일 테이블의 create_table 블록을 출력한다.

        블록 전체를 버퍼에 구성한 뒤 한 번에 기록한다.
        조회 중 오류가 발생하면 예외를 그대로 전파한다.
        """
        relation = self._policy.relation_name(table_name, scope)
        self._log(LOG_TAG_INFO, f"테이블 덤프 중: {relation}")

        columns = self._catalog.columns(table_name)
        pk      = self._catalog.primary_keys(table_name)

        tbl = io.StringIO()
        header = f"{INDENT}create_table {inspect(relation)}"

        if len(pk) == 1:
            pk_name = pk[0]
            if pk_name != "id":
                header += f", primary_key: {inspect(pk_name)}"
            pk_column = next((c for c in columns if c.name == pk_name), None)
            if pk_column is not None:
                pk_spec = self.column_spec_for_primary_key(pk_column)
                if pk_spec:
                    header += f", {format_options(pk_spec)}"
        elif len(pk) > 1:
            header += f", primary_key: {inspect(pk)}"
        else:
            header += ", id: false"

        puts(tbl, f'{header}, force: "cascade" do |t|')

        for column in columns:
            if len(pk) == 1 and column.name == pk[0]:
                continue
            column_type, spec = self.column_spec(column)
            if column_type in NATIVE_TYPES:
                line = f"{TABLE_INDENT}t.{column_type} {inspect(column.name)}"
            else:
                line = f"{TABLE_INDENT}t.column {inspect(column.name)}, {inspect(column.sql_type)}"
            if spec:
                line += f", {format_options(spec)}"
            puts(tbl, line)

        self.indexes_in_create(table_name, tbl)
        self.check_constraints_in_create(table_name, tbl)
        self._policy.exclusion_constraints_in_create(table_name, tbl)
        self._policy.unique_constraints_in_create(table_name, tbl)

        puts(tbl, f"{INDENT}end")
        stream.write(tbl.getvalue())

    # ==================================================================
    # 컬럼
    # ==================================================================

    def column_spec(self, column: Column) -> Tuple[str, Dict[str, Any]]:
        """(덤프 타입, 옵션) 쌍을 반환한다. 생성 컬럼은 "virtual" 타입으로 출력한다."""
        if self._policy.supports_virtual_columns() and column.virtual:
            column_type = "virtual"
        else:
            column_type = self._policy.schema_type(column)
        return column_type, self.prepare_column_options(column)

    def prepare_column_options(self, column: Column) -> Dict[str, Any]:
        """
        방언 비의존 기본 컬럼 옵션을 구성한 뒤 ColumnPolicy에 장식을 맡긴다.

        기본 옵션 순서: limit, precision, scale, default | default_function, null, comment
        """
        spec: Dict[str, Any] = {}

        limit = self.schema_limit(column)
        if limit is not None:
            spec["limit"] = limit
        if column.precision is not None:
            spec["precision"] = column.precision
        if column.scale is not None:
            spec["scale"] = column.scale

        if column.has_default:
            if column.default is not None:
                spec["default"] = column.default
            else:
                expression = self._policy.schema_expression(column)
                if expression is not None:
                    spec["default_function"] = expression

        if not column.null:
            spec["null"] = False
        if column.comment:
            spec["comment"] = column.comment

        return self._policy.decorate_column_options(column, spec)

    def schema_limit(self, column: Column) -> Optional[int]:
        """
        출력할 limit 값. 정수형은 기본 폭(4)과 bigint(8)일 때 생략한다.
        """
        if column.limit is None:
            return None
        if column.type == INTEGER_TYPE:
            return None if column.limit in (4, 8) else column.limit
        return column.limit

    def column_spec_for_primary_key(self, column: Column) -> Dict[str, Any]:
        """
        단일 PK 컬럼을 create_table 헤더 옵션으로 변환한다.

        기본 PK(bigserial)면 id: 옵션을 생략하고,
        그 외 타입이면 id: "<type>"을 명시한다.
        id / default 이외의 옵션이 있으면 id: { type: ..., ... } 형태로 묶는다.

        @example
            # uuid PK, gen_random_uuid() 기본값
            # -> {"id": "uuid", "default_function": "gen_random_uuid()"}
            #    (id / default / default_function만 있으므로 중첩하지 않음)
        """
        spec: Dict[str, Any] = {}
        if not self._policy.default_primary_key(column):
            spec["id"] = self._policy.schema_type(column)

        options = self.prepare_column_options(column)
        options.pop("null", None)
        spec.update(options)

        if (
            self._policy.explicit_primary_key_default(column)
            and "default" not in spec
            and "default_function" not in spec
        ):
            spec["default"] = None

        if set(spec) - {"id", "default", "default_function"}:
            nested = {"type": spec.pop("id", None)}
            nested.update(spec)
            if nested["type"] is None:
                del nested["type"]
            spec = {"id": nested}
        return spec

    # ==================================================================
    # 인덱스 / CHECK
    # ==================================================================

    def indexes_in_create(self, table_name: str, stream) -> None:
        indexes = self._catalog.indexes(table_name)
        if not indexes:
            return
        statements = [
            f"{TABLE_INDENT}t.index {', '.join(self.index_parts(index))}"
            for index in indexes
        ]
        puts(stream, "\n".join(sorted(statements)))

    def index_parts(self, index: Index) -> List[str]:
        parts = [inspect(index.columns), f"name: {inspect(index.name)}"]
        if index.unique:
            parts.append("unique: true")
        if index.where:
            parts.append(f"where: {inspect(index.where)}")
        if index.using and index.using != "btree":
            parts.append(f"using: {inspect(index.using)}")
        if index.nulls_not_distinct:
            parts.append("nulls_not_distinct: true")
        if index.comment:
            parts.append(f"comment: {inspect(index.comment)}")
        return parts

    def check_constraints_in_create(self, table_name: str, stream) -> None:
        constraints = self._catalog.check_constraints(table_name)
        if not constraints:
            return
        statements = [self._check_constraint_statement(c) for c in constraints]
        puts(stream, "\n".join(sorted(statements)))

    def _check_constraint_statement(self, constraint: CheckConstraint) -> str:
        parts = [inspect(constraint.expression)]
        if constraint.export_name:
            parts.append(f"name: {inspect(constraint.name)}")
        if not constraint.validate:
            parts.append("validate: false")
        return f"{TABLE_INDENT}t.check_constraint {', '.join(parts)}"

    # ==================================================================
    # FOREIGN KEY
    # ==================================================================

    def foreign_keys(self, table_name: str, stream, scope) -> None:
        foreign_keys = self._catalog.foreign_keys(table_name)
        if not foreign_keys:
            return
        statements = [
            f"{INDENT}add_foreign_key {', '.join(self.foreign_key_parts(fk, scope))}"
            for fk in foreign_keys
        ]
        puts(stream, "\n".join(sorted(statements)))

    def foreign_key_parts(self, foreign_key: ForeignKey, scope) -> List[str]:
        """
        add_foreign_key 인자 목록.

        참조 대상이 다른 스키마에 있으면 스키마 한정 이름을 그대로 사용한다.
        컬럼/참조 컬럼이 하나면 문자열, 여러 개면 리스트로 출력한다.
        """
        if foreign_key.to_schema == scope.schema_name:
            to_table = self._policy.relation_name(foreign_key.to_table, scope)
        else:
            to_table = f"{foreign_key.to_schema}.{foreign_key.to_table}"

        parts = [
            inspect(self._policy.relation_name(foreign_key.from_table, scope)),
            inspect(to_table),
            f"column: {inspect(_single_or_list(foreign_key.column))}",
        ]
        if foreign_key.primary_key != ["id"]:
            parts.append(f"primary_key: {inspect(_single_or_list(foreign_key.primary_key))}")
        if foreign_key.export_name:
            parts.append(f"name: {inspect(foreign_key.name)}")
        if foreign_key.on_update:
            parts.append(f"on_update: {inspect(foreign_key.on_update)}")
        if foreign_key.on_delete:
            parts.append(f"on_delete: {inspect(foreign_key.on_delete)}")
        if foreign_key.deferrable:
            parts.append(f"deferrable: {inspect(foreign_key.deferrable)}")
        if not foreign_key.validate:
            parts.append("validate: false")
        return parts


def _single_or_list(names: List[str]):
    return names[0] if len(names) == 1 else names
