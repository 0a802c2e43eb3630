"""
PostgreSQL Schema Dumper - Application Configuration

애플리케이션 전역 상수 및 설정값 정의.
모든 모듈에서 참조하는 단일 설정 소스(Single Source of Truth)로 기능한다.

구성 항목:
    - 애플리케이션 메타 정보 (이름, 버전)
    - PostgreSQL 접속 기본값
    - 덤프 대상 스키마 / 제외 테이블 설정 (환경변수로 오버라이드 가능)
    - 자동 생성 제약조건명 패턴
    - 프로파일 파일 경로
    - 출력 포맷 (들여쓰기, 헤더)
    - 로그 태그
"""

import os
import sys


def get_app_dir() -> str:
    """
    실행 파일 기준 디렉토리를 반환한다.

    PyInstaller로 번들된 환경에서는 sys.executable 경로를,
    개발 환경에서는 이 파일(__file__)의 디렉토리를 기준으로 한다.

    @returns 실행 파일 또는 소스 파일이 위치한 디렉토리의 절대 경로
    """
    if getattr(sys, "frozen", False):
        return os.path.dirname(sys.executable)
    return os.path.dirname(os.path.abspath(__file__))


def _split_env_list(value: str) -> list:
    """콤마 구분 환경변수 값을 공백 제거된 리스트로 변환한다. 빈 항목은 버린다."""
    return [item.strip() for item in value.split(",") if item.strip()]


# ---------------------------------------------------------------------------
# 애플리케이션 메타 정보
# ---------------------------------------------------------------------------
APP_NAME    = "PostgreSQL Schema Dumper"
APP_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# PostgreSQL 접속 기본값
# ConnectionInfo.from_env()에서 PG* 환경변수가 없을 때 사용된다.
# ---------------------------------------------------------------------------
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 5432
DEFAULT_USER = "postgres"
DEFAULT_DB   = "postgres"

# ---------------------------------------------------------------------------
# 덤프 대상 스키마 설정
#   - SCHEMA_SEARCH_PATH : 현재 커넥션의 search_path에 있는 스키마만 덤프
#   - "a, b"             : 명시한 스키마 중 실제 존재하는 것만, 지정 순서대로 덤프
#   - None               : 시스템 스키마를 제외한 전체 스키마 덤프
# ---------------------------------------------------------------------------
SCHEMA_SEARCH_PATH = ":schema_search_path"
DUMP_SCHEMAS       = os.environ.get("PG_DUMP_SCHEMAS") or None

# 기본(암시적) 스키마. create_schema 선언 대상에서 제외된다.
DEFAULT_SCHEMA = "public"

# ---------------------------------------------------------------------------
# 덤프에서 제외할 테이블명
# 마이그레이션 이력 테이블은 구조 덤프 대상이 아니다.
# ---------------------------------------------------------------------------
IGNORE_TABLES = _split_env_list(
    os.environ.get("PG_DUMP_IGNORE_TABLES", "schema_migrations, ar_internal_metadata")
)

# ---------------------------------------------------------------------------
# 자동 생성 제약조건명 패턴
# 이 패턴에 일치하는 이름은 덤프 출력에서 name: 옵션을 생략한다.
# ---------------------------------------------------------------------------
FK_IGNORE_PATTERN     = r"^fk_rails_[0-9a-f]{10}$"
CHECK_IGNORE_PATTERN  = r"^chk_rails_[0-9a-f]{10}$"
EXCL_IGNORE_PATTERN   = r"^excl_rails_[0-9a-f]{10}$"
UNIQUE_IGNORE_PATTERN = r"^uniq_rails_[0-9a-f]{10}$"

# ---------------------------------------------------------------------------
# 접속 프로파일 저장 파일 경로
# 실행 파일과 동일 디렉토리에 profiles.json으로 저장된다.
# ---------------------------------------------------------------------------
PROFILE_FILE = os.path.join(get_app_dir(), "profiles.json")

# ---------------------------------------------------------------------------
# 출력 포맷
# INDENT      : define 블록 내부 구문 들여쓰기
# TABLE_INDENT: create_table 블록 내부 구문 들여쓰기
# ---------------------------------------------------------------------------
INDENT       = "  "
TABLE_INDENT = "    "

DUMP_HEADER = [
    "# This file is auto-generated from the current state of the database. Instead",
    "# of editing this file, change the database and regenerate this schema definition.",
    "#",
    "# This file is the source used to define the schema of a fresh database.",
    "# Loading it is faster and less error prone than replaying every migration",
    "# from scratch.",
    "#",
    "# It's strongly recommended that you check this file into your version control system.",
]

# ---------------------------------------------------------------------------
# 로그 태그 상수
# 각 서비스의 로그 콜백 호출 시 태그로 전달한다.
# ---------------------------------------------------------------------------
LOG_TAG_INFO    = "INFO"
LOG_TAG_OK      = "OK"
LOG_TAG_ERROR   = "ERROR"
LOG_TAG_WARNING = "WARN"
