"""
스키마(네임스페이스) 범위 컨텍스트.

덤프 도중 "현재 스키마"는 두 곳에 반영된다.
    1. DB 세션의 search_path   : 카탈로그 조회가 해당 스키마만 보도록 한다
    2. NamespaceScope.schema_name : 이름 한정(qualification)에 사용한다

NamespaceScope는 with 블록 진입 시 이전 search_path를 저장하고 스키마를 전환하며,
블록 종료 시(정상 종료와 예외 모두) schema_name을 비우고 search_path를 복원한다.
예외는 복원 후 그대로 전파된다.

사용처:
    - SchemaDumper.within_each_schema() : 덤프 대상 스키마 순회
"""

from typing import Optional


class NamespaceScope:
    """
    단일 스키마 범위를 표현하는 컨텍스트 매니저.

    스코프 객체는 이름 한정이 필요한 모든 호출에 명시적으로 전달된다.
    (SchemaDumper.relation_name(name, scope), TableEmitter.tables(stream, scope))

    내부 상태:
        _catalog          : search_path를 제어할 메타데이터 제공자
        _saved_search_path: 진입 전 search_path 원문 (복원용)
        schema_name       : 활성 스키마명, 스코프 밖에서는 None
    """

    def __init__(self, catalog, schema_name: str, qualify: bool):
        """
        @param catalog      schema_search_path 프로퍼티와 use_schema()를 제공하는 객체
        @param schema_name  진입할 스키마명
        @param qualify      덤프 대상 스키마가 2개 이상이면 True (이름에 스키마 접두어 부여)
        """
        self._catalog           = catalog
        self._target            = schema_name
        self._saved_search_path: Optional[str] = None
        self.qualify            = qualify
        self.schema_name: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.schema_name is not None

    def __enter__(self) -> "NamespaceScope":
        self._saved_search_path = self._catalog.schema_search_path
        try:
            self._catalog.use_schema(self._target)
        except BaseException:
            self._catalog.schema_search_path = self._saved_search_path
            raise
        self.schema_name = self._target
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.schema_name = None
        self._catalog.schema_search_path = self._saved_search_path
        # 예외를 삼키지 않는다.
        return False
