"""
덤프 구문 값 표기 헬퍼.

덤프 문서의 인자/옵션 값은 JSON 리터럴 표기를 따른다.
    - 문자열 : "text" (큰따옴표, 이스케이프 포함)
    - 불리언 : true / false
    - None   : null
    - 숫자   : 10, 1.5
    - 리스트 : ["a", "b"]
    - 딕셔너리(중첩 옵션) : { type: "integer", limit: 2 }

옵션은 "key: value" 쌍을 ", "로 연결한다.
같은 입력은 항상 같은 문자열을 만들어야 하므로(덤프 결정성),
딕셔너리는 삽입 순서를 그대로 출력 순서로 사용한다.
"""

import json
from typing import Any, Mapping


def inspect(value: Any) -> str:
    """
    값을 덤프 문서 리터럴로 변환한다.

    @example
        inspect("gist")          # -> '"gist"'
        inspect(True)            # -> 'true'
        inspect(["a", "b"])      # -> '["a", "b"]'
        inspect({"type": "integer", "limit": 2})  # -> '{ type: "integer", limit: 2 }'
    """
    if isinstance(value, Mapping):
        return "{ " + format_options(value) + " }"
    return json.dumps(value, ensure_ascii=False)


def format_options(options: Mapping[str, Any]) -> str:
    """
    옵션 딕셔너리를 "key: value, key: value" 문자열로 변환한다.

    @param options  옵션명 -> 값 (삽입 순서 유지)
    @returns        옵션 문자열 (빈 딕셔너리면 빈 문자열)
    """
    return ", ".join(f"{key}: {inspect(value)}" for key, value in options.items())


def puts(stream, line: str = "") -> None:
    """스트림에 한 줄을 기록한다. 인자가 없으면 빈 줄을 기록한다."""
    stream.write(line + "\n")
