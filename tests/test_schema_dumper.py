"""
PostgreSQL Schema Dumper - SchemaDumper Unit Tests

FakeCatalog 기반으로 덤프 문서 형식과 결정성을 검증한다:
- Extensions / create_schema / create_enum 블록
- 스키마 이름 한정 규칙
- 스키마 간 빈 줄 구분자 위치
- EXCLUDE / UNIQUE 제약조건 출력과 정렬
- 배열 / 생성 / ENUM 컬럼 옵션
- serial / uuid / integer PK 판별
- 예외 발생 시 search_path 복원
- 같은 DB 상태에 대한 출력 결정성
"""

import io

import pytest

from config import DUMP_HEADER
from models.schema_objects import Column, ExclusionConstraint, UniqueConstraint
from services.schema_dumper import SchemaDumper

from conftest import FakeCatalog, FakeSchema, FakeTable, bigserial_id, simple_table, string_column


def dump_body(dumper: SchemaDumper) -> str:
    """헤더와 "define do" 줄을 제외한 본문."""
    text   = dumper.dump_to_string()
    header = "\n".join(DUMP_HEADER) + "\n\ndefine do\n"
    assert text.startswith(header)
    return text[len(header):]


def scoped_output(dumper: SchemaDumper, emit) -> str:
    """모든 덤프 대상 스키마 범위에서 emit(scope, stream)을 실행한 출력."""
    stream = io.StringIO()
    dumper.within_each_schema(lambda scope: emit(scope, stream))
    return stream.getvalue()


class TestExtensions:
    """enable_extension 블록."""

    def test_extensions_sorted_with_comment_and_blank_line(self):
        catalog = FakeCatalog(extensions=["pgcrypto", "hstore", "citext"])
        stream  = io.StringIO()

        SchemaDumper(catalog, dump_schemas=None).extensions(stream)

        assert stream.getvalue() == (
            "  # These are extensions that must be enabled in order to support this database\n"
            '  enable_extension "citext"\n'
            '  enable_extension "hstore"\n'
            '  enable_extension "pgcrypto"\n'
            "\n"
        )

    def test_no_extensions_emits_nothing(self):
        stream = io.StringIO()
        SchemaDumper(FakeCatalog(), dump_schemas=None).extensions(stream)
        assert stream.getvalue() == ""

    def test_repeated_calls_are_identical(self):
        dumper = SchemaDumper(FakeCatalog(extensions=["uuid-ossp", "btree_gist"]), dump_schemas=None)
        first, second = io.StringIO(), io.StringIO()
        dumper.extensions(first)
        dumper.extensions(second)
        assert first.getvalue() == second.getvalue()


class TestSchemaDeclarations:
    """create_schema 블록."""

    def test_public_only_emits_nothing(self):
        stream = io.StringIO()
        SchemaDumper(FakeCatalog(), dump_schemas="public").schemas(stream)
        assert stream.getvalue() == ""

    def test_non_public_schemas_sorted_then_blank_line(self):
        catalog = FakeCatalog(schemas={
            "public": FakeSchema(),
            "sales":  FakeSchema(),
            "ops":    FakeSchema(),
        })
        stream = io.StringIO()

        SchemaDumper(catalog, dump_schemas="public, sales, ops").schemas(stream)

        assert stream.getvalue() == (
            '  create_schema "ops"\n'
            '  create_schema "sales"\n'
            "\n"
        )


class TestEnumTypes:
    """create_enum 블록."""

    def test_single_schema_names_are_unqualified_and_labels_keep_order(self):
        catalog = FakeCatalog(schemas={
            "public": FakeSchema(enums={
                "status": ["draft", "published", "archived"],
                "mood":   ["sad", "ok", "happy"],
            }),
        })
        dumper = SchemaDumper(catalog, dump_schemas="public")

        output = scoped_output(dumper, lambda scope, stream: dumper.types(stream, scope))

        assert output == (
            "  # Custom types defined in this database.\n"
            "  # Note that some types may not work with other database engines. Be careful if changing database.\n"
            '  create_enum "mood", ["sad", "ok", "happy"]\n'
            '  create_enum "status", ["draft", "published", "archived"]\n'
        )

    def test_multiple_schemas_qualify_type_names(self):
        catalog = FakeCatalog(schemas={
            "public": FakeSchema(),
            "sales":  FakeSchema(enums={"mood": ["sad", "happy"]}),
        })
        dumper = SchemaDumper(catalog, dump_schemas="public, sales")

        output = scoped_output(dumper, lambda scope, stream: dumper.types(stream, scope))

        assert '  create_enum "sales.mood", ["sad", "happy"]\n' in output
        # 타입이 없는 public에서는 주석도 출력하지 않는다.
        assert output.count("# Custom types defined in this database.") == 1


class TestQualification:
    """테이블 이름 한정 규칙."""

    def test_single_schema_table_is_unqualified(self, public_catalog):
        body = dump_body(SchemaDumper(public_catalog, dump_schemas="public"))
        assert '  create_table "widgets", force: "cascade" do |t|\n' in body

    def test_multiple_schemas_qualify_table_names(self):
        catalog = FakeCatalog(schemas={
            "public": FakeSchema(),
            "sales":  FakeSchema(tables={"widgets": simple_table()}),
        })

        body = dump_body(SchemaDumper(catalog, dump_schemas="public, sales"))

        assert '  create_table "sales.widgets", force: "cascade" do |t|\n' in body


class TestSchemaSeparators:
    """스키마 간 테이블 블록 구분자."""

    def test_blank_line_only_between_schemas_with_tables(self):
        catalog = FakeCatalog(schemas={
            "a": FakeSchema(tables={"t1": simple_table()}),
            "b": FakeSchema(),
            "c": FakeSchema(tables={"t3": simple_table()}),
        })

        body = dump_body(SchemaDumper(catalog, dump_schemas="a, b, c"))

        assert body == (
            '  create_schema "a"\n'
            '  create_schema "b"\n'
            '  create_schema "c"\n'
            "\n"
            '  create_table "a.t1", force: "cascade" do |t|\n'
            "  end\n"
            "\n"
            '  create_table "c.t3", force: "cascade" do |t|\n'
            "  end\n"
            "end\n"
        )

    def test_first_schema_without_tables_has_no_leading_blank(self):
        catalog = FakeCatalog(schemas={
            "public": FakeSchema(),
            "sales":  FakeSchema(tables={"orders": simple_table()}),
        })

        body = dump_body(SchemaDumper(catalog, dump_schemas="public, sales"))

        assert body == (
            '  create_schema "sales"\n'
            "\n"
            '  create_table "sales.orders", force: "cascade" do |t|\n'
            "  end\n"
            "end\n"
        )


class TestExclusionConstraints:
    """t.exclusion_constraint 출력."""

    def test_all_fields_in_fixed_order(self):
        table = simple_table(exclusion_constraints=[
            ExclusionConstraint(
                expression  = "daterange(starts_on, ends_on) WITH &&",
                where       = "active",
                using       = "gist",
                deferrable  = "immediate",
                name        = "no_overlap",
                export_name = True,
            ),
        ])
        catalog = FakeCatalog(schemas={"public": FakeSchema(tables={"bookings": table})})
        dumper  = SchemaDumper(catalog, dump_schemas="public")

        output = scoped_output(
            dumper, lambda scope, stream: dumper.exclusion_constraints_in_create("bookings", stream)
        )

        assert output == (
            '    t.exclusion_constraint "daterange(starts_on, ends_on) WITH &&", '
            'where: "active", using: "gist", deferrable: "immediate", name: "no_overlap"\n'
        )

    def test_statements_sorted_by_rendered_text(self):
        table = simple_table(exclusion_constraints=[
            ExclusionConstraint(expression="room WITH =", using="gist", export_name=False,
                                name="excl_rails_0123456789"),
            ExclusionConstraint(expression="during WITH &&", using="gist", export_name=False,
                                name="excl_rails_abcdefabcd"),
        ])
        catalog = FakeCatalog(schemas={"public": FakeSchema(tables={"rooms": table})})
        dumper  = SchemaDumper(catalog, dump_schemas="public")

        output = scoped_output(
            dumper, lambda scope, stream: dumper.exclusion_constraints_in_create("rooms", stream)
        )

        assert output == (
            '    t.exclusion_constraint "during WITH &&", using: "gist"\n'
            '    t.exclusion_constraint "room WITH =", using: "gist"\n'
        )

    def test_no_constraints_emits_nothing(self, public_catalog):
        dumper = SchemaDumper(public_catalog, dump_schemas="public")
        output = scoped_output(
            dumper, lambda scope, stream: dumper.exclusion_constraints_in_create("widgets", stream)
        )
        assert output == ""


class TestUniqueConstraints:
    """t.unique_constraint 출력."""

    def _output(self, *constraints):
        catalog = FakeCatalog(schemas={
            "public": FakeSchema(tables={"widgets": simple_table(unique_constraints=list(constraints))}),
        })
        dumper = SchemaDumper(catalog, dump_schemas="public")
        return scoped_output(
            dumper, lambda scope, stream: dumper.unique_constraints_in_create("widgets", stream)
        )

    def test_name_hidden_when_export_flag_false(self):
        output = self._output(UniqueConstraint(column=["code"], name="uniq_rails_0123456789",
                                               export_name=False))
        assert output == '    t.unique_constraint ["code"]\n'

    def test_name_shown_when_export_flag_true(self):
        output = self._output(UniqueConstraint(column=["code"], name="widgets_code_key",
                                               export_name=True))
        assert output == '    t.unique_constraint ["code"], name: "widgets_code_key"\n'

    def test_all_fields_in_fixed_order(self):
        output = self._output(UniqueConstraint(
            column             = ["position", "list_id"],
            nulls_not_distinct = True,
            deferrable         = "deferred",
            name               = "unique_position",
            export_name        = True,
        ))
        assert output == (
            '    t.unique_constraint ["position", "list_id"], nulls_not_distinct: true, '
            'deferrable: "deferred", name: "unique_position"\n'
        )


class TestColumnOptions:
    """배열 / 생성 / ENUM 컬럼 옵션."""

    def _table_body(self, column, virtual_columns=True):
        catalog = FakeCatalog(
            schemas={"public": FakeSchema(tables={"people": simple_table(column)})},
            virtual_columns=virtual_columns,
        )
        return dump_body(SchemaDumper(catalog, dump_schemas="public"))

    def test_array_column(self):
        column = Column(name="tags", sql_type="text", type="text", array=True)
        assert '    t.text "tags", array: true\n' in self._table_body(column)

    def test_virtual_column_puts_type_first(self):
        column = Column(
            name             = "name_upcased",
            sql_type         = "character varying",
            type             = "string",
            default_function = "upper((name)::text)",
            virtual          = True,
        )
        assert (
            '    t.virtual "name_upcased", type: "string", as: "upper((name)::text)", stored: true\n'
            in self._table_body(column)
        )

    def test_virtual_column_ignored_without_engine_support(self):
        column = Column(
            name             = "name_upcased",
            sql_type         = "character varying",
            type             = "string",
            default_function = "upper((name)::text)",
            virtual          = True,
        )
        body = self._table_body(column, virtual_columns=False)
        assert '    t.string "name_upcased"\n' in body
        assert "stored" not in body

    def test_enum_column_keeps_storage_type_name(self):
        column = Column(name="current_mood", sql_type="sales.mood", type="enum", enum=True)
        assert (
            '    t.enum "current_mood", enum_type: "sales.mood"\n'
            in self._table_body(column)
        )

    def test_enum_array_column(self):
        column = Column(name="moods", sql_type="mood", type="enum", enum=True, array=True)
        assert '    t.enum "moods", array: true, enum_type: "mood"\n' in self._table_body(column)


class TestSerialColumns:
    """serial 컬럼 타입 결정과 기본값 생략."""

    def _counter(self, sql_type, limit):
        return Column(
            name             = "counter",
            sql_type         = sql_type,
            type             = "integer",
            null             = False,
            default_function = "nextval('widgets_counter_seq'::regclass)",
            serial           = True,
            limit            = limit,
        )

    def _body(self, column):
        catalog = FakeCatalog(schemas={"public": FakeSchema(tables={"widgets": simple_table(column)})})
        return dump_body(SchemaDumper(catalog, dump_schemas="public"))

    def test_eight_byte_serial_is_bigserial_without_default(self):
        body = self._body(self._counter("bigint", 8))
        assert '    t.bigserial "counter", null: false\n' in body
        assert "nextval" not in body

    def test_four_byte_serial_is_serial_without_default(self):
        body = self._body(self._counter("integer", 4))
        assert '    t.serial "counter", null: false\n' in body
        assert "nextval" not in body


class TestPrimaryKeys:
    """create_table 헤더의 PK 옵션."""

    def _header(self, columns, primary_keys):
        table   = FakeTable(columns=columns, primary_keys=primary_keys)
        catalog = FakeCatalog(schemas={"public": FakeSchema(tables={"widgets": table})})
        body    = dump_body(SchemaDumper(catalog, dump_schemas="public"))
        return body.splitlines()[0]

    def test_bigserial_id_needs_no_options(self):
        assert self._header([bigserial_id()], ["id"]) == \
            '  create_table "widgets", force: "cascade" do |t|'

    def test_serial_id_declares_type(self):
        column = Column(name="id", sql_type="integer", type="integer", null=False,
                        default_function="nextval('widgets_id_seq'::regclass)",
                        serial=True, limit=4)
        assert self._header([column], ["id"]) == \
            '  create_table "widgets", id: "serial", force: "cascade" do |t|'

    def test_uuid_id_with_function_default(self):
        column = Column(name="id", sql_type="uuid", type="uuid", null=False,
                        default_function="gen_random_uuid()")
        assert self._header([column], ["id"]) == (
            '  create_table "widgets", id: "uuid", default_function: "gen_random_uuid()", '
            'force: "cascade" do |t|'
        )

    def test_uuid_id_without_default_is_explicit_null(self):
        column = Column(name="id", sql_type="uuid", type="uuid", null=False)
        assert self._header([column], ["id"]) == \
            '  create_table "widgets", id: "uuid", default: null, force: "cascade" do |t|'

    def test_plain_integer_id_is_explicit(self):
        column = Column(name="id", sql_type="integer", type="integer", null=False, limit=4)
        assert self._header([column], ["id"]) == \
            '  create_table "widgets", id: "integer", default: null, force: "cascade" do |t|'

    def test_custom_primary_key_with_extra_options_is_nested(self):
        column = string_column("code", null=False, limit=10)
        assert self._header([column], ["code"]) == (
            '  create_table "widgets", primary_key: "code", '
            'id: { type: "string", limit: 10 }, force: "cascade" do |t|'
        )

    def test_composite_primary_key(self):
        columns = [
            Column(name="a", sql_type="integer", type="integer", null=False, limit=4),
            Column(name="b", sql_type="integer", type="integer", null=False, limit=4),
        ]
        assert self._header(columns, ["a", "b"]) == \
            '  create_table "widgets", primary_key: ["a", "b"], force: "cascade" do |t|'

    def test_table_without_primary_key(self):
        assert self._header([string_column("name")], []) == \
            '  create_table "widgets", id: false, force: "cascade" do |t|'


class TestColumnPolicy:
    """PK 판별 정책 메서드."""

    @pytest.fixture
    def dumper(self):
        return SchemaDumper(FakeCatalog(), dump_schemas="public")

    def test_default_primary_key_only_for_bigserial(self, dumper):
        assert dumper.default_primary_key(bigserial_id()) is True
        small = Column(name="id", sql_type="integer", type="integer", serial=True, limit=4)
        assert dumper.default_primary_key(small) is False

    def test_explicit_primary_key_default(self, dumper):
        uuid_col    = Column(name="id", sql_type="uuid", type="uuid")
        integer_col = Column(name="id", sql_type="integer", type="integer", limit=4)
        string_col  = string_column("id")
        assert dumper.explicit_primary_key_default(uuid_col) is True
        assert dumper.explicit_primary_key_default(integer_col) is True
        assert dumper.explicit_primary_key_default(bigserial_id()) is False
        assert dumper.explicit_primary_key_default(string_col) is False

    def test_schema_expression_suppressed_for_serial(self, dumper):
        assert dumper.schema_expression(bigserial_id()) is None
        created = Column(name="created_at", sql_type="timestamp without time zone",
                         type="datetime", default_function="now()")
        assert dumper.schema_expression(created) == "now()"


class TestNamespaceRestoration:
    """스키마 순회 중 예외 발생 시 search_path / 스코프 복원."""

    def _catalog(self, failing_schema=None):
        return FakeCatalog(
            schemas={
                "a": FakeSchema(tables={"t1": simple_table()}),
                "b": FakeSchema(tables={"t2": simple_table()}),
                "c": FakeSchema(tables={"t3": simple_table()}),
            },
            search_path='"$user", public',
            failing_schema=failing_schema,
        )

    def test_error_in_second_schema_restores_context(self):
        catalog = self._catalog()
        dumper  = SchemaDumper(catalog, dump_schemas="a, b, c")
        scopes  = []
        visited = []

        def body(scope):
            scopes.append(scope)
            visited.append(scope.schema_name)
            if scope.schema_name == "b":
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            dumper.within_each_schema(body)

        assert visited == ["a", "b"]
        assert catalog.schema_search_path == '"$user", public'
        assert all(scope.schema_name is None for scope in scopes)

    def test_provider_error_propagates_after_restoration(self):
        catalog = self._catalog(failing_schema="b")
        dumper  = SchemaDumper(catalog, dump_schemas="a, b, c")
        stream  = io.StringIO()

        with pytest.raises(RuntimeError, match="tables\\(\\) failed in b"):
            dumper.dump(stream)

        assert catalog.schema_search_path == '"$user", public'
        assert catalog.search_path_history == ["a", '"$user", public', "b", '"$user", public']
        # 실패 전까지 기록된 내용은 그대로 남는다.
        assert '  create_table "a.t1", force: "cascade" do |t|\n' in stream.getvalue()

    def test_successful_run_visits_schemas_in_configured_order(self):
        catalog = self._catalog()
        dumper  = SchemaDumper(catalog, dump_schemas="c, a, b")
        visited = []

        dumper.within_each_schema(lambda scope: visited.append(scope.schema_name))

        assert visited == ["c", "a", "b"]
        assert catalog.schema_search_path == '"$user", public'


class TestDeterminism:
    """같은 DB 상태는 같은 덤프를 만든다."""

    def _catalog(self, reverse=False):
        def ordered(items):
            return list(reversed(items)) if reverse else list(items)

        table = simple_table(
            string_column("code", null=False),
            exclusion_constraints=ordered([
                ExclusionConstraint(expression="a WITH =", using="gist", name="ex_a"),
                ExclusionConstraint(expression="b WITH =", using="gist", name="ex_b"),
            ]),
            unique_constraints=ordered([
                UniqueConstraint(column=["code"], name="uq_code"),
                UniqueConstraint(column=["id", "code"], name="uq_id_code"),
            ]),
        )
        enums = {"mood": ["sad", "happy"], "level": ["low", "high"]}
        if reverse:
            enums = dict(reversed(list(enums.items())))
        return FakeCatalog(
            schemas={"public": FakeSchema(enums=enums, tables={"widgets": table})},
            extensions=ordered(["pgcrypto", "hstore", "btree_gist"]),
        )

    def test_two_dumps_are_identical(self):
        dumper = SchemaDumper(self._catalog(), dump_schemas="public")
        assert dumper.dump_to_string() == dumper.dump_to_string()

    def test_provider_order_does_not_change_output(self):
        forward = SchemaDumper(self._catalog(), dump_schemas="public").dump_to_string()
        reverse = SchemaDumper(self._catalog(reverse=True), dump_schemas="public").dump_to_string()
        assert forward == reverse

    def test_full_document(self):
        text = SchemaDumper(self._catalog(), dump_schemas="public").dump_to_string()
        header = "\n".join(DUMP_HEADER) + "\n\n"
        assert text == header + (
            "define do\n"
            "  # These are extensions that must be enabled in order to support this database\n"
            '  enable_extension "btree_gist"\n'
            '  enable_extension "hstore"\n'
            '  enable_extension "pgcrypto"\n'
            "\n"
            "  # Custom types defined in this database.\n"
            "  # Note that some types may not work with other database engines. Be careful if changing database.\n"
            '  create_enum "level", ["low", "high"]\n'
            '  create_enum "mood", ["sad", "happy"]\n'
            '  create_table "widgets", force: "cascade" do |t|\n'
            '    t.string "code", null: false\n'
            '    t.exclusion_constraint "a WITH =", using: "gist", name: "ex_a"\n'
            '    t.exclusion_constraint "b WITH =", using: "gist", name: "ex_b"\n'
            '    t.unique_constraint ["code"], name: "uq_code"\n'
            '    t.unique_constraint ["id", "code"], name: "uq_id_code"\n'
            "  end\n"
            "end\n"
        )


class TestLogging:
    """로그 콜백 호출."""

    def test_dump_reports_schemas_and_completion(self, public_catalog, log, log_records):
        SchemaDumper(public_catalog, dump_schemas="public", log=log).dump_to_string()

        assert ("INFO", "대상 스키마 1개: public") in log_records
        assert ("INFO", "테이블 덤프 중: widgets") in log_records
        assert log_records[-1] == ("OK", "스키마 덤프 완료")
