"""
덤프 대상 스키마 선택.

설정값에 따라 덤프할 스키마 목록(dump set)을 한 번 계산한다.
계산된 목록은 덤프가 끝날 때까지 변하지 않는다.

설정값:
    - config.SCHEMA_SEARCH_PATH : 현재 search_path에서 해석 가능한 스키마 (search_path 순서)
    - "a, b, c"                 : 실제 존재하는 스키마만, 지정 순서대로 (중복 제거)
    - None / ""                 : 시스템 스키마를 제외한 전체 스키마

존재하지 않는 스키마명은 오류 없이 제외한다. (WARN 로그만 남김)
결과가 비어도 오류가 아니며, 이 경우 스키마 범위 출력이 모두 생략된다.
"""

from typing import Callable, List, Optional

from config import LOG_TAG_WARNING, SCHEMA_SEARCH_PATH


# 로그 콜백 타입 alias
LogCallback = Callable[[str, str], None]


def select_dump_schemas(
    setting: Optional[str],
    catalog,
    log:     Optional[LogCallback] = None,
) -> List[str]:
    """
    덤프 대상 스키마 목록을 계산한다.

    @param setting  스키마 설정값 (위 모듈 설명 참조)
    @param catalog  current_schemas() / schema_names()를 제공하는 메타데이터 제공자
    @param log      로그 콜백 (tag, message)
    @returns        순서가 보장된 중복 없는 스키마명 리스트

    @example
        select_dump_schemas("sales, public, missing", catalog)
        # -> ["sales", "public"]   ("missing"은 DB에 없으므로 제외)
    """
    if log is None:
        log = lambda tag, msg: None

    if setting == SCHEMA_SEARCH_PATH:
        return _unique(catalog.current_schemas())

    if not setting:
        return _unique(catalog.schema_names())

    requested = [name.strip() for name in setting.split(",") if name.strip()]
    existing  = set(catalog.schema_names())

    missing = [name for name in requested if name not in existing]
    if missing:
        log(LOG_TAG_WARNING, f"존재하지 않는 스키마 제외: {', '.join(missing)}")

    return _unique(name for name in requested if name in existing)


def _unique(names) -> List[str]:
    """첫 등장 순서를 유지하며 중복을 제거한다."""
    seen   = set()
    result = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result
