"""
PostgreSQL 시스템 카탈로그 조회 서비스.

pg_catalog 시스템 테이블을 psycopg2로 조회하여
스키마 구조 메타데이터를 models.schema_objects 값 객체로 변환한다.
SchemaDumper / TableEmitter가 사용하는 메타데이터 제공자(Metadata Provider)이다.

스키마 해석 규칙:
    스키마 범위 조회(enum_types, tables, columns, ...)는 모두
    "현재 search_path에 포함된 스키마" (current_schemas(false)) 기준으로 동작한다.
    SchemaDumper는 스키마마다 search_path를 해당 스키마 하나로 바꾼 뒤 조회하므로,
    같은 이름의 테이블이 여러 스키마에 있어도 현재 스키마의 것만 보인다.

순수 파싱 헬퍼(parse_default, simplified_type, ...)는 모듈 레벨 함수로 분리하여
DB 접속 없이 단위 테스트가 가능하도록 한다.

사용처:
    - SchemaDumper  : 확장, ENUM, 스키마 목록, search_path 제어
    - TableEmitter  : 테이블/컬럼/인덱스/제약조건 조회
"""

import re
from typing import Any, Dict, List, Optional, Tuple

import psycopg2.extensions
from psycopg2 import sql

from config import (
    CHECK_IGNORE_PATTERN,
    EXCL_IGNORE_PATTERN,
    FK_IGNORE_PATTERN,
    UNIQUE_IGNORE_PATTERN,
)
from models.schema_objects import (
    INTEGER_TYPE,
    CheckConstraint,
    Column,
    ExclusionConstraint,
    ForeignKey,
    Index,
    UniqueConstraint,
)


# 생성(GENERATED) 컬럼을 지원하는 최소 서버 버전 (PostgreSQL 12)
VIRTUAL_COLUMNS_MIN_VERSION = 120000

# pg_constraint.confdeltype / confupdtype 코드 -> 덤프 옵션값
# 'a' (NO ACTION)은 기본 동작이므로 출력하지 않는다.
FK_ACTIONS = {
    "c": "cascade",
    "n": "nullify",
    "r": "restrict",
}

# format_type() 결과 -> 논리 타입 (길이/정밀도 수식어 제거 후 매칭)
SIMPLE_TYPES = {
    "text":                        "text",
    "character varying":           "string",
    "character":                   "string",
    "smallint":                    INTEGER_TYPE,
    "integer":                     INTEGER_TYPE,
    "bigint":                      INTEGER_TYPE,
    "numeric":                     "decimal",
    "real":                        "float",
    "double precision":            "float",
    "boolean":                     "boolean",
    "date":                        "date",
    "timestamp without time zone": "datetime",
    "timestamp with time zone":    "timestamptz",
    "time without time zone":      "time",
    "time with time zone":         "timetz",
    "interval":                    "interval",
    "bytea":                       "binary",
    "bit":                         "bit",
    "bit varying":                 "bit_varying",
    "money":                       "money",
}

# 정수 타입별 저장 폭 (byte)
INTEGER_WIDTHS = {
    "smallint": 2,
    "integer":  4,
    "bigint":   8,
}

_MODIFIER_RE      = re.compile(r"^(?P<base>[a-z ]+?)(?:\((?P<args>[\d, ]+)\))?(?P<rest>[a-z ]*)$")
_NUMERIC_DEFAULT  = re.compile(r"^\(?(-?\d+(?:\.\d*)?)\)?(?:::[\w ]+)?$")
_STRING_DEFAULT   = re.compile(r"^'(.*)'::[\w .\"\[\]()]+$", re.S)
_EXCLUSION_RE     = re.compile(r"EXCLUDE(?: USING (?P<using>\S+))? \((?P<expression>.+)\)", re.S)
_DEFERRABLE_RE    = re.compile(r" DEFERRABLE(?: INITIALLY (?:IMMEDIATE|DEFERRED))?")
_INDEX_EXPRESSION = re.compile(r" USING \w+ \((?P<expression>.+)\)", re.S)


# ==================================================================
# 파싱 헬퍼
# ==================================================================

def export_name_on_schema_dump(name: Optional[str], pattern: str) -> bool:
    """
    제약조건명을 덤프에 출력할지 판별한다.

    자동 생성 명명 규칙(pattern)에 일치하는 이름은 출력하지 않는다.

    @param name     제약조건명
    @param pattern  자동 생성 이름 정규식
    @returns        True이면 name: 옵션 출력 대상

    @example
        export_name_on_schema_dump("uniq_rails_0123456789", UNIQUE_IGNORE_PATTERN)  # -> False
        export_name_on_schema_dump("index_widgets_on_code", UNIQUE_IGNORE_PATTERN)  # -> True
    """
    if not name:
        return False
    return re.match(pattern, name) is None


def extract_constraint_deferrable(deferrable: bool, deferred: bool) -> Optional[str]:
    """
    pg_constraint의 condeferrable / condeferred 플래그를 덤프 옵션값으로 변환한다.

    @returns  "deferred" / "immediate" / None (지연 불가)
    """
    if not deferrable:
        return None
    return "deferred" if deferred else "immediate"


def simplified_type(sql_type: str) -> Tuple[str, Optional[int], Optional[int], Optional[int]]:
    """
    format_type() 결과를 논리 타입과 수식어로 분해한다.

    알 수 없는 타입은 원문을 그대로 논리 타입으로 사용한다.
    (TableEmitter는 이런 컬럼을 t.column "name", "sql_type" 형태로 출력한다.)

    @param sql_type  format_type() 결과 (배열 표기 "[]"는 제거된 상태)
    @returns         (type, limit, precision, scale)

    @example
        simplified_type("character varying(255)")    # -> ("string", 255, None, None)
        simplified_type("numeric(10,2)")             # -> ("decimal", None, 10, 2)
        simplified_type("timestamp(3) without time zone")  # -> ("datetime", None, 3, None)
        simplified_type("smallint")                  # -> ("integer", 2, None, None)
    """
    match = _MODIFIER_RE.match(sql_type)
    if match is None:
        return sql_type, None, None, None

    base = (match.group("base") + match.group("rest")).strip()
    args = [int(a) for a in (match.group("args") or "").split(",") if a.strip()]

    logical = SIMPLE_TYPES.get(base)
    if logical is None:
        # uuid, json, jsonb, inet, tsvector 등은 타입명이 곧 논리 타입이다.
        return sql_type, None, None, None

    if logical == INTEGER_TYPE:
        return logical, INTEGER_WIDTHS[base], None, None
    if logical in ("string", "bit", "bit_varying"):
        return logical, (args[0] if args else None), None, None
    if logical == "decimal":
        precision = args[0] if args else None
        scale     = args[1] if len(args) > 1 else None
        return logical, None, precision, scale
    if logical in ("datetime", "timestamptz", "time", "timetz"):
        return logical, None, (args[0] if args else None), None
    return logical, None, None, None


def parse_default(expression: Optional[str], logical_type: str) -> Tuple[Any, Optional[str]]:
    """
    pg_get_expr()로 얻은 기본값 표현식을 리터럴 값과 함수 표현식으로 분리한다.

    @param expression    기본값 표현식 원문 (없으면 None)
    @param logical_type  컬럼 논리 타입 (리터럴 형 변환 기준)
    @returns             (default, default_function) - 둘 중 하나만 값을 가진다

    @example
        parse_default("'draft'::character varying", "string")  # -> ("draft", None)
        parse_default("0", "integer")                          # -> (0, None)
        parse_default("now()", "datetime")                     # -> (None, "now()")
        parse_default("nextval('widgets_id_seq'::regclass)", "integer")
        # -> (None, "nextval('widgets_id_seq'::regclass)")
    """
    if expression is None:
        return None, None
    if expression.startswith("NULL::"):
        return None, None
    if expression in ("true", "false"):
        return expression == "true", None

    match = _NUMERIC_DEFAULT.match(expression)
    if match:
        number = match.group(1)
        if logical_type == INTEGER_TYPE:
            return int(number), None
        if logical_type == "float":
            return float(number), None
        return number, None

    match = _STRING_DEFAULT.match(expression)
    if match:
        value = match.group(1).replace("''", "'")
        if logical_type == "boolean" and value in ("t", "f", "true", "false"):
            return value in ("t", "true"), None
        if logical_type == INTEGER_TYPE and re.fullmatch(r"-?\d+", value):
            return int(value), None
        # 음수 상수는 '-1.5'::double precision 처럼 따옴표 캐스트 형태로 저장된다.
        if logical_type == "float" and re.fullmatch(r"-?\d+(?:\.\d*)?", value):
            return float(value), None
        return value, None

    return None, expression


def parse_check_definition(definition: str) -> str:
    """
    pg_get_constraintdef()의 "CHECK ((expr))" 결과에서 조건식만 추출한다.

    NOT VALID 접미어도 제거한다.
    """
    if definition.endswith(" NOT VALID"):
        definition = definition[: -len(" NOT VALID")]
    if definition.upper().startswith("CHECK "):
        definition = definition[6:].strip()
        # 최외곽 괄호 제거
        if definition.startswith("(") and definition.endswith(")"):
            definition = definition[1:-1]
    return definition


def parse_exclusion_definition(definition: str) -> Tuple[Optional[str], str, Optional[str]]:
    """
    pg_get_constraintdef()의 EXCLUDE 정의를 (using, expression, where)로 분해한다.

    @example
        parse_exclusion_definition(
            "EXCLUDE USING gist (daterange(starts_on, ends_on) WITH &&) WHERE ((active))"
        )
        # -> ("gist", "daterange(starts_on, ends_on) WITH &&", "active")
    """
    definition = _DEFERRABLE_RE.sub("", definition)
    method_and_elements, _, predicate = definition.partition(" WHERE ")

    match = _EXCLUSION_RE.match(method_and_elements)
    if match is None:
        raise ValueError(f"EXCLUDE 정의를 해석할 수 없습니다: {definition}")

    where = None
    if predicate:
        # WHERE ((...)) 형태의 이중 괄호 제거
        where = predicate[2:-2]
    return match.group("using"), match.group("expression"), where


# ==================================================================
# 카탈로그
# ==================================================================

class PostgresCatalog:
    """
    psycopg2 커넥션 기반 메타데이터 제공자.

    모든 조회는 읽기 전용이며, 유일한 부수 효과는 search_path 변경이다.
    조회 실패 시 psycopg2 예외를 그대로 전파한다.

    내부 상태:
        _conn : 활성 psycopg2 커넥션 (autocommit=True 상태 권장)
    """

    def __init__(self, conn: psycopg2.extensions.connection):
        self._conn = conn

    # ------------------------------------------------------------------
    # DB 레벨
    # ------------------------------------------------------------------

    def extensions(self) -> List[str]:
        """
        설치된 확장 목록을 조회한다.

        plpgsql은 PostgreSQL 기본 내장 확장이므로 제외한다.
        """
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT extname
                FROM   pg_extension
                WHERE  extname != 'plpgsql'
            """)
            return [row[0] for row in cur.fetchall()]

    def schema_names(self) -> List[str]:
        """
        시스템 스키마(pg_*, information_schema)를 제외한 전체 스키마명.

        @returns  스키마명 리스트 (알파벳순)
        """
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT nspname
                FROM   pg_namespace
                WHERE  nspname !~ '^pg_'
                AND    nspname != 'information_schema'
                ORDER  BY nspname
            """)
            return [row[0] for row in cur.fetchall()]

    def current_schemas(self) -> List[str]:
        """
        현재 search_path에서 실제로 해석 가능한 스키마 목록 (search_path 순서).
        """
        with self._conn.cursor() as cur:
            cur.execute("SELECT current_schemas(false)::text[]")
            return list(cur.fetchone()[0])

    def supports_virtual_columns(self) -> bool:
        return self._conn.server_version >= VIRTUAL_COLUMNS_MIN_VERSION

    # ------------------------------------------------------------------
    # search_path 제어
    # ------------------------------------------------------------------

    @property
    def schema_search_path(self) -> str:
        """현재 세션의 search_path 원문 (예: '"$user", public')."""
        with self._conn.cursor() as cur:
            cur.execute("SHOW search_path")
            return cur.fetchone()[0]

    @schema_search_path.setter
    def schema_search_path(self, value: str) -> None:
        # SHOW 결과 원문을 그대로 복원할 수 있도록 set_config()를 사용한다.
        with self._conn.cursor() as cur:
            cur.execute("SELECT pg_catalog.set_config('search_path', %s, false)", (value,))

    def use_schema(self, schema: str) -> None:
        """search_path를 지정 스키마 하나로 설정한다."""
        with self._conn.cursor() as cur:
            cur.execute(sql.SQL("SET search_path TO {}").format(sql.Identifier(schema)))

    # ------------------------------------------------------------------
    # 현재 스키마 범위 조회
    # ------------------------------------------------------------------

    def enum_types(self) -> Dict[str, List[str]]:
        """
        현재 스키마의 ENUM 타입 정의를 조회한다.

        @returns  {타입명: [라벨, ...]} - 라벨은 enumsortorder 순서 유지
        """
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT t.typname::text,
                       array_agg(e.enumlabel::text ORDER BY e.enumsortorder) AS labels
                FROM   pg_enum e
                JOIN   pg_type t      ON t.oid = e.enumtypid
                JOIN   pg_namespace n ON n.oid = t.typnamespace
                WHERE  n.nspname = ANY (current_schemas(false))
                GROUP  BY t.oid, t.typname
            """)
            return {name: list(labels) for name, labels in cur.fetchall()}

    def tables(self) -> List[str]:
        """현재 스키마의 일반 테이블 및 파티션 부모 테이블명."""
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT c.relname
                FROM   pg_class c
                JOIN   pg_namespace n ON n.oid = c.relnamespace
                WHERE  n.nspname = ANY (current_schemas(false))
                AND    c.relkind IN ('r', 'p')
                ORDER  BY c.relname
            """)
            return [row[0] for row in cur.fetchall()]

    def columns(self, table_name: str) -> List[Column]:
        """
        테이블의 컬럼 정의를 조회한다.

        pg_attribute + pg_type + pg_attrdef를 조인하며,
        배열 컬럼은 원소 타입(typelem) 기준으로 논리 타입을 판별한다.
        시스템 컬럼(attnum <= 0)과 삭제된 컬럼은 제외한다.

        @param table_name  테이블명
        @returns           Column 리스트 (attnum 순서)
        """
        generated = "a.attgenerated" if self.supports_virtual_columns() else "''"

        with self._conn.cursor() as cur:
            cur.execute(f"""
                SELECT a.attname,
                       pg_catalog.format_type(a.atttypid, a.atttypmod)       AS sql_type,
                       NOT a.attnotnull                                      AS nullable,
                       pg_get_expr(d.adbin, d.adrelid)                       AS default_expr,
                       {generated}                                           AS generated,
                       t.typcategory = 'A'                                   AS is_array,
                       COALESCE(et.typtype, t.typtype) = 'e'                 AS is_enum,
                       pg_get_serial_sequence(
                           quote_ident(n.nspname) || '.' || quote_ident(c.relname),
                           a.attname
                       ) IS NOT NULL                                         AS owns_sequence,
                       col_description(c.oid, a.attnum)                      AS comment
                FROM   pg_attribute a
                JOIN   pg_class c      ON c.oid = a.attrelid
                JOIN   pg_namespace n  ON n.oid = c.relnamespace
                JOIN   pg_type t       ON t.oid = a.atttypid
                LEFT JOIN pg_type et   ON et.oid = t.typelem AND t.typcategory = 'A'
                LEFT JOIN pg_attrdef d ON d.adrelid = a.attrelid AND d.adnum = a.attnum
                WHERE  n.nspname = ANY (current_schemas(false))
                AND    c.relname = %s
                AND    a.attnum  > 0
                AND    NOT a.attisdropped
                ORDER  BY a.attnum
            """, (table_name,))
            rows = cur.fetchall()

        return [self._build_column(*row) for row in rows]

    def _build_column(
        self,
        name:          str,
        sql_type:      str,
        nullable:      bool,
        default_expr:  Optional[str],
        generated:     str,
        is_array:      bool,
        is_enum:       bool,
        owns_sequence: bool,
        comment:       Optional[str],
    ) -> Column:
        """카탈로그 조회 한 행을 Column으로 변환한다."""
        if is_array and sql_type.endswith("[]"):
            sql_type = sql_type[:-2]

        if is_enum:
            logical, limit, precision, scale = "enum", None, None, None
        else:
            logical, limit, precision, scale = simplified_type(sql_type)

        virtual = generated == "s"
        if virtual:
            default, default_function = None, default_expr
        else:
            default, default_function = parse_default(default_expr, logical)

        serial = (
            owns_sequence
            and default_function is not None
            and default_function.startswith("nextval(")
        )

        return Column(
            name             = name,
            sql_type         = sql_type,
            type             = logical,
            null             = nullable,
            default          = default,
            default_function = default_function,
            array            = is_array,
            virtual          = virtual,
            enum             = is_enum,
            serial           = serial,
            limit            = limit,
            precision        = precision,
            scale            = scale,
            comment          = comment,
        )

    def primary_keys(self, table_name: str) -> List[str]:
        """
        테이블의 PRIMARY KEY 컬럼명을 조회한다.

        복합 PK의 경우 conkey 배열 순서를 유지한다.

        @returns  PK 컬럼명 리스트 (PK가 없으면 빈 리스트)
        """
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT a.attname
                FROM   pg_constraint c
                JOIN   pg_class t     ON t.oid = c.conrelid
                JOIN   pg_namespace s ON s.oid = t.relnamespace
                CROSS JOIN LATERAL unnest(c.conkey) WITH ORDINALITY AS x(attnum, n)
                JOIN   pg_attribute a ON a.attrelid = t.oid AND a.attnum = x.attnum
                WHERE  c.contype = 'p'
                AND    s.nspname = ANY (current_schemas(false))
                AND    t.relname = %s
                ORDER  BY x.n
            """, (table_name,))
            return [row[0] for row in cur.fetchall()]

    def indexes(self, table_name: str) -> List[Index]:
        """
        제약조건(PK, UNIQUE, EXCLUDE)에 속하지 않는 인덱스를 조회한다.

        제약조건이 생성한 인덱스는 각 제약조건 구문으로 덤프되므로 제외한다.
        표현식 인덱스는 pg_get_indexdef() 원문에서 표현식을 추출한다.
        """
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT ic.relname,
                       i.indisunique,
                       pg_get_indexdef(i.indexrelid)                         AS indexdef,
                       am.amname,
                       pg_get_expr(i.indpred, i.indrelid)                    AS predicate,
                       ARRAY(
                           SELECT a.attname::text
                           FROM   unnest(i.indkey::int2[]) WITH ORDINALITY AS k(attnum, n)
                           LEFT JOIN pg_attribute a
                                  ON a.attrelid = i.indrelid AND a.attnum = k.attnum
                           WHERE  k.n <= i.indnkeyatts
                           ORDER  BY k.n
                       )                                                     AS columns,
                       obj_description(ic.oid, 'pg_class')                   AS comment
                FROM   pg_index i
                JOIN   pg_class t     ON t.oid  = i.indrelid
                JOIN   pg_class ic    ON ic.oid = i.indexrelid
                JOIN   pg_namespace n ON n.oid  = t.relnamespace
                JOIN   pg_am am       ON am.oid = ic.relam
                WHERE  n.nspname = ANY (current_schemas(false))
                AND    t.relname = %s
                AND    NOT i.indisprimary
                AND    NOT EXISTS (
                    SELECT 1
                    FROM   pg_constraint con
                    WHERE  con.conindid = i.indexrelid
                    AND    con.contype IN ('p', 'u', 'x')
                )
                ORDER  BY ic.relname
            """, (table_name,))
            rows = cur.fetchall()

        indexes = []
        for name, unique, indexdef, using, predicate, columns, comment in rows:
            if any(c is None for c in columns):
                # 표현식 인덱스: "... USING btree (lower((email)::text)) WHERE ..."
                head = indexdef.split(" WHERE ")[0]
                match = _INDEX_EXPRESSION.search(head)
                columns = match.group("expression") if match else indexdef
            indexes.append(Index(
                name               = name,
                columns            = columns if isinstance(columns, str) else list(columns),
                unique             = unique,
                where              = predicate,
                using              = using,
                nulls_not_distinct = "NULLS NOT DISTINCT" in indexdef,
                comment            = comment,
            ))
        return indexes

    def check_constraints(self, table_name: str) -> List[CheckConstraint]:
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT c.conname,
                       pg_get_constraintdef(c.oid),
                       c.convalidated
                FROM   pg_constraint c
                JOIN   pg_class t     ON t.oid = c.conrelid
                JOIN   pg_namespace s ON s.oid = t.relnamespace
                WHERE  c.contype = 'c'
                AND    s.nspname = ANY (current_schemas(false))
                AND    t.relname = %s
            """, (table_name,))
            rows = cur.fetchall()

        return [
            CheckConstraint(
                expression  = parse_check_definition(definition),
                name        = name,
                validate    = validated,
                export_name = export_name_on_schema_dump(name, CHECK_IGNORE_PATTERN),
            )
            for name, definition, validated in rows
        ]

    def exclusion_constraints(self, table_name: str) -> List[ExclusionConstraint]:
        """
        테이블의 EXCLUDE 제약조건을 조회한다.

        pg_get_constraintdef() 결과를 using / expression / where로 분해하고,
        condeferrable / condeferred로 지연 모드를 판별한다.
        """
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT c.conname,
                       pg_get_constraintdef(c.oid),
                       c.condeferrable,
                       c.condeferred
                FROM   pg_constraint c
                JOIN   pg_class t     ON t.oid = c.conrelid
                JOIN   pg_namespace s ON s.oid = t.relnamespace
                WHERE  c.contype = 'x'
                AND    s.nspname = ANY (current_schemas(false))
                AND    t.relname = %s
            """, (table_name,))
            rows = cur.fetchall()

        constraints = []
        for name, definition, deferrable, deferred in rows:
            using, expression, where = parse_exclusion_definition(definition)
            constraints.append(ExclusionConstraint(
                expression  = expression,
                where       = where,
                using       = using,
                deferrable  = extract_constraint_deferrable(deferrable, deferred),
                name        = name,
                export_name = export_name_on_schema_dump(name, EXCL_IGNORE_PATTERN),
            ))
        return constraints

    def unique_constraints(self, table_name: str) -> List[UniqueConstraint]:
        """
        테이블의 UNIQUE 제약조건을 조회한다.

        컬럼명은 conkey 순서를 유지하며,
        NULLS NOT DISTINCT 여부는 제약조건 정의문 접두어로 판별한다. (PostgreSQL 15+)
        """
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT c.conname,
                       ARRAY(
                           SELECT a.attname::text
                           FROM   unnest(c.conkey) WITH ORDINALITY AS k(attnum, n)
                           JOIN   pg_attribute a
                                  ON a.attrelid = c.conrelid AND a.attnum = k.attnum
                           ORDER  BY k.n
                       )                            AS columns,
                       c.condeferrable,
                       c.condeferred,
                       pg_get_constraintdef(c.oid)  AS definition
                FROM   pg_constraint c
                JOIN   pg_class t     ON t.oid = c.conrelid
                JOIN   pg_namespace s ON s.oid = t.relnamespace
                WHERE  c.contype = 'u'
                AND    s.nspname = ANY (current_schemas(false))
                AND    t.relname = %s
            """, (table_name,))
            rows = cur.fetchall()

        return [
            UniqueConstraint(
                column             = list(columns),
                nulls_not_distinct = definition.startswith("UNIQUE NULLS NOT DISTINCT"),
                deferrable         = extract_constraint_deferrable(deferrable, deferred),
                name               = name,
                export_name        = export_name_on_schema_dump(name, UNIQUE_IGNORE_PATTERN),
            )
            for name, columns, deferrable, deferred, definition in rows
        ]

    def foreign_keys(self, table_name: str) -> List[ForeignKey]:
        """
        테이블이 참조하는 FOREIGN KEY 제약조건을 조회한다.

        참조 대상 테이블의 스키마명을 함께 반환하여,
        다른 스키마를 참조하는 경우 덤프에서 스키마를 한정할 수 있도록 한다.
        """
        with self._conn.cursor() as cur:
            cur.execute("""
                SELECT c.conname,
                       tn.nspname                   AS to_schema,
                       t2.relname                   AS to_table,
                       ARRAY(
                           SELECT a.attname::text
                           FROM   unnest(c.conkey) WITH ORDINALITY AS k(attnum, n)
                           JOIN   pg_attribute a
                                  ON a.attrelid = c.conrelid AND a.attnum = k.attnum
                           ORDER  BY k.n
                       )                            AS columns,
                       ARRAY(
                           SELECT a.attname::text
                           FROM   unnest(c.confkey) WITH ORDINALITY AS k(attnum, n)
                           JOIN   pg_attribute a
                                  ON a.attrelid = c.confrelid AND a.attnum = k.attnum
                           ORDER  BY k.n
                       )                            AS primary_key,
                       c.confdeltype,
                       c.confupdtype,
                       c.condeferrable,
                       c.condeferred,
                       c.convalidated
                FROM   pg_constraint c
                JOIN   pg_class t1     ON t1.oid = c.conrelid
                JOIN   pg_class t2     ON t2.oid = c.confrelid
                JOIN   pg_namespace fn ON fn.oid = t1.relnamespace
                JOIN   pg_namespace tn ON tn.oid = t2.relnamespace
                WHERE  c.contype = 'f'
                AND    fn.nspname = ANY (current_schemas(false))
                AND    t1.relname = %s
            """, (table_name,))
            rows = cur.fetchall()

        foreign_keys = []
        for (name, to_schema, to_table, columns, primary_key,
             on_delete, on_update, deferrable, deferred, validated) in rows:
            foreign_keys.append(ForeignKey(
                from_table  = table_name,
                to_schema   = to_schema,
                to_table    = to_table,
                column      = list(columns),
                primary_key = list(primary_key),
                name        = name,
                on_delete   = FK_ACTIONS.get(on_delete),
                on_update   = FK_ACTIONS.get(on_update),
                deferrable  = extract_constraint_deferrable(deferrable, deferred),
                validate    = validated,
                export_name = export_name_on_schema_dump(name, FK_IGNORE_PATTERN),
            ))
        return foreign_keys
