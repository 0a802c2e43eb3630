"""
PostgreSQL Schema Dumper - Entry Point

라이브 PostgreSQL DB의 구조를 결정적(deterministic) 스키마 정의 문서로 덤프한다.
덤프 결과는 버전 관리에 커밋하여 새 DB 구성이나 구조 변경 리뷰에 사용한다.

접속 정보:
    - 기본      : libpq 환경변수 (PGHOST, PGPORT, PGUSER, PGPASSWORD, PGDATABASE)
    - --profile : profiles.json에 저장된 이름 붙은 프로파일

덤프 대상 스키마 우선순위:
    --schemas 옵션 > 프로파일의 dump_schemas > PG_DUMP_SCHEMAS 환경변수 > 전체 스키마

프로파일 관리:
    --save-profile NAME : 현재 접속 정보와 --schemas 값을 프로파일로 저장 (덤프하지 않음)
    --list-profiles     : 저장된 프로파일 목록 출력 (접속하지 않음)

Usage:
    python main.py                               # stdout으로 출력
    python main.py -o db/schema.dump             # 파일로 저장
    python main.py --schemas "public, sales"
    python main.py --schemas :schema_search_path
    python main.py --profile staging
    python main.py --schemas "public, sales" --save-profile staging
    python main.py --list-profiles
"""

import argparse
import dataclasses
import sys
from typing import List, Optional

import psycopg2

from config                      import APP_NAME, APP_VERSION, DUMP_SCHEMAS, LOG_TAG_ERROR, LOG_TAG_OK
from models.connection_info      import ConnectionInfo
from services.connection_service import ConnectionService
from services.profile_manager    import ProfileManager
from services.schema_dumper      import SchemaDumper


def stderr_log(tag: str, message: str) -> None:
    """로그 콜백. stdout은 덤프 본문 전용이므로 로그는 stderr로 출력한다."""
    print(f"[{tag}] {message}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pg-schema-dump",
        description=f"{APP_NAME} {APP_VERSION}",
    )
    parser.add_argument("-o", "--output", help="덤프 파일 경로 (생략 시 stdout)")
    parser.add_argument(
        "--schemas",
        help='덤프 대상 스키마 ("public, sales" 또는 ":schema_search_path")',
    )
    parser.add_argument("--profile", help="profiles.json에 저장된 프로파일 이름")
    parser.add_argument("--profile-file", help="프로파일 JSON 파일 경로")
    parser.add_argument("--save-profile", metavar="NAME", help="현재 설정을 프로파일로 저장")
    parser.add_argument("--list-profiles", action="store_true", help="저장된 프로파일 목록 출력")
    parser.add_argument("-q", "--quiet", action="store_true", help="진행 로그 출력 안 함")
    return parser


def profile_manager(args: argparse.Namespace) -> ProfileManager:
    return ProfileManager(args.profile_file) if args.profile_file else ProfileManager()


def resolve_connection(args: argparse.Namespace) -> ConnectionInfo:
    """
    명령행 인자로부터 접속 정보를 결정한다.

    @throws ValueError 지정한 프로파일이 없을 경우
    """
    if not args.profile:
        return ConnectionInfo.from_env()

    info = profile_manager(args).get(args.profile)
    if info is None:
        raise ValueError(f"프로파일을 찾을 수 없습니다: {args.profile}")
    return info


def list_profiles(args: argparse.Namespace) -> int:
    """저장된 프로파일을 "이름<TAB>user@host:port/dbname<TAB>스키마" 형식으로 출력한다."""
    for info in profile_manager(args).load_all():
        target = f"{info.user}@{info.host}:{info.port}/{info.dbname}"
        print(f"{info.name}\t{target}\t{info.dump_schemas or ''}")
    return 0


def save_profile(args: argparse.Namespace, info: ConnectionInfo, log) -> int:
    """
    접속 정보를 --save-profile 이름으로 저장한다.

    --schemas가 있으면 프로파일의 dump_schemas로 함께 저장한다.
    """
    profile = dataclasses.replace(
        info,
        name         = args.save_profile,
        dump_schemas = args.schemas or info.dump_schemas,
    )
    profile_manager(args).save(profile)
    log(LOG_TAG_OK, f"프로파일 저장 완료: {profile.name}")
    return 0


def run(argv: Optional[List[str]] = None) -> int:
    """
    덤프를 실행하고 프로세스 종료 코드를 반환한다.

    @returns 0 (성공), 1 (접속/조회 실패 또는 설정 오류)
    """
    args = build_parser().parse_args(argv)
    log  = (lambda tag, msg: None) if args.quiet else stderr_log

    if args.list_profiles:
        return list_profiles(args)

    try:
        info = resolve_connection(args)
    except ValueError as e:
        log(LOG_TAG_ERROR, str(e))
        return 1

    if args.save_profile:
        return save_profile(args, info, log)

    dump_schemas = args.schemas or info.dump_schemas or DUMP_SCHEMAS

    with ConnectionService() as service:
        try:
            conn   = service.connect(info)
            dumper = SchemaDumper.from_connection(conn, dump_schemas=dump_schemas, log=log)
            if args.output:
                with open(args.output, "w", encoding="utf-8") as f:
                    dumper.dump(f)
                log(LOG_TAG_OK, f"덤프 파일 저장 완료: {args.output}")
            else:
                dumper.dump(sys.stdout)
        except psycopg2.Error as e:
            log(LOG_TAG_ERROR, f"스키마 덤프 실패 ({info.display_name}): {e}")
            return 1

    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
