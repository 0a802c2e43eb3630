"""
스키마 구조 메타데이터 모델.

PostgresCatalog가 시스템 카탈로그에서 조회한 결과를 담는 읽기 전용 값 객체.
SchemaDumper / TableEmitter는 이 객체들을 읽어 덤프 구문으로 변환할 뿐,
값을 수정하지 않는다.

구성:
    - Column              : 컬럼 정의 (타입, NULL 허용, 기본값, 방언 플래그)
    - Index               : 제약조건에 속하지 않는 인덱스
    - CheckConstraint     : CHECK 제약조건
    - ExclusionConstraint : EXCLUDE 제약조건
    - UniqueConstraint    : UNIQUE 제약조건 (인덱스 유일성과 별개)
    - ForeignKey          : FOREIGN KEY 제약조건
"""

from dataclasses import dataclass, field
from typing      import Any, List, Optional, Union


# 정수 계열 논리 타입. smallint/integer/bigint는 모두 "integer"로 분류되고
# 저장 폭(limit)으로 구분한다.
INTEGER_TYPE = "integer"


@dataclass(frozen=True)
class Column:
    """
    테이블 컬럼 정의.

    @param name              컬럼명
    @param sql_type          format_type() 결과 원문 (예: "character varying(255)", "mood")
                             배열 컬럼은 원소 타입 기준 (예: "text[]" -> "text")
    @param type              논리 타입 (예: "string", "integer", "uuid", "enum")
    @param null              NULL 허용 여부
    @param default           리터럴 기본값 (파싱된 Python 값) 또는 None
    @param default_function  함수/표현식 기본값 원문 (예: "now()") 또는 None.
                             생성 컬럼은 생성식이 여기에 담긴다.
    @param array             배열 타입 여부
    @param virtual           생성(GENERATED ALWAYS AS) 컬럼 여부
    @param enum              ENUM 타입 컬럼 여부
    @param serial            시퀀스 소유(serial / identity) 컬럼 여부
    @param limit             문자 길이 또는 정수 저장 폭(byte)
    @param precision         numeric 정밀도
    @param scale             numeric 스케일
    @param comment           컬럼 코멘트
    """
    name:             str
    sql_type:         str
    type:             str
    null:             bool          = True
    default:          Any           = None
    default_function: Optional[str] = None
    array:            bool          = False
    virtual:          bool          = False
    enum:             bool          = False
    serial:           bool          = False
    limit:            Optional[int] = None
    precision:        Optional[int] = None
    scale:            Optional[int] = None
    comment:          Optional[str] = None

    @property
    def bigint(self) -> bool:
        """8바이트 정수 컬럼 여부."""
        if self.sql_type == "bigint":
            return True
        return self.type == INTEGER_TYPE and self.limit == 8

    @property
    def has_default(self) -> bool:
        # 생성 컬럼의 생성식은 기본값이 아니다.
        if self.virtual:
            return False
        return self.default is not None or self.default_function is not None


@dataclass(frozen=True)
class Index:
    """
    @param name                인덱스명
    @param columns             컬럼명 리스트, 또는 표현식 인덱스의 경우 표현식 문자열
    @param unique              UNIQUE 인덱스 여부
    @param where               부분 인덱스 조건
    @param using               접근 방식 (btree 이외일 때만 출력)
    @param nulls_not_distinct  NULLS NOT DISTINCT 여부
    @param comment             인덱스 코멘트
    """
    name:               str
    columns:            Union[List[str], str]
    unique:             bool          = False
    where:              Optional[str] = None
    using:              Optional[str] = None
    nulls_not_distinct: bool          = False
    comment:            Optional[str] = None


@dataclass(frozen=True)
class CheckConstraint:
    expression:  str
    name:        str
    validate:    bool = True
    export_name: bool = True


@dataclass(frozen=True)
class ExclusionConstraint:
    """
    EXCLUDE 제약조건.

    @param expression   제외 조건 원소 목록 (예: "daterange(starts_on, ends_on) WITH &&")
    @param where        부분 제약 조건
    @param using        인덱스 접근 방식 (예: "gist")
    @param deferrable   "immediate" / "deferred" / None
    @param name         제약조건명
    @param export_name  덤프 시 name 출력 여부 (자동 생성 명명 규칙이면 False)
    """
    expression:  str
    where:       Optional[str] = None
    using:       Optional[str] = None
    deferrable:  Optional[str] = None
    name:        Optional[str] = None
    export_name: bool          = True


@dataclass(frozen=True)
class UniqueConstraint:
    """
    UNIQUE 제약조건.

    @param column              대상 컬럼명 리스트 (정의 순서 유지)
    @param nulls_not_distinct  NULLS NOT DISTINCT 여부
    @param deferrable          "immediate" / "deferred" / None
    @param name                제약조건명
    @param export_name         덤프 시 name 출력 여부
    """
    column:             List[str]
    nulls_not_distinct: bool          = False
    deferrable:         Optional[str] = None
    name:               Optional[str] = None
    export_name:        bool          = True


@dataclass(frozen=True)
class ForeignKey:
    """
    FOREIGN KEY 제약조건.

    @param from_table   참조하는 테이블명 (현재 스키마 기준)
    @param to_schema    참조 대상 테이블의 스키마명
    @param to_table     참조 대상 테이블명
    @param column       참조 컬럼명 리스트
    @param primary_key  참조 대상 컬럼명 리스트
    @param on_delete    "cascade" / "nullify" / "restrict" / None
    @param on_update    on_delete와 동일한 값 범위
    @param deferrable   "immediate" / "deferred" / None
    @param validate     NOT VALID 제약이면 False
    """
    from_table:  str
    to_schema:   str
    to_table:    str
    column:      List[str]     = field(default_factory=list)
    primary_key: List[str]     = field(default_factory=lambda: ["id"])
    name:        Optional[str] = None
    on_delete:   Optional[str] = None
    on_update:   Optional[str] = None
    deferrable:  Optional[str] = None
    validate:    bool          = True
    export_name: bool          = True
