"""
PostgreSQL 접속 정보 데이터 모델.

하나의 덤프 대상 DB 접속에 필요한 파라미터와
해당 접속에서 사용할 덤프 대상 스키마 설정을 함께 캡슐화한다.

사용처:
    - ConnectionService : connect() 시 DSN 파라미터 제공
    - ProfileManager    : JSON 직렬화/역직렬화를 통한 프로파일 영속화
    - main              : 환경변수(PG*) 또는 프로파일로부터 접속 정보 구성
"""

import os
from dataclasses import dataclass, asdict
from typing      import Mapping, Optional

from config import DEFAULT_DB, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_USER


@dataclass
class ConnectionInfo:
    """
    덤프 대상 PostgreSQL 서버 접속 정보.

    @param host          서버 IP 주소 또는 도메인명
    @param port          서버 포트 번호
    @param user          접속 사용자명
    @param password      접속 비밀번호
    @param dbname        덤프 대상 데이터베이스명
    @param name          프로파일 별칭 (예: "staging")
    @param dump_schemas  덤프 대상 스키마 설정. None이면 config.DUMP_SCHEMAS를 따른다.
                         (":schema_search_path" 또는 "public, sales" 형식)

    @example
        info = ConnectionInfo(host="10.0.0.1", dbname="app", dump_schemas="public, sales")
        conn = psycopg2.connect(**info.dsn)
    """
    host:         str           = DEFAULT_HOST
    port:         int           = DEFAULT_PORT
    user:         str           = DEFAULT_USER
    password:     str           = ""
    dbname:       str           = DEFAULT_DB
    name:         str           = ""
    dump_schemas: Optional[str] = None

    @property
    def display_name(self) -> str:
        """
        로그에 표시할 이름을 반환한다.

        name이 비어있으면 "user@host:port/dbname" 형식으로 생성한다.
        """
        if self.name:
            return self.name
        return f"{self.user}@{self.host}:{self.port}/{self.dbname}"

    @property
    def dsn(self) -> dict:
        """
        psycopg2.connect()에 키워드 인자로 전달할 파라미터 딕셔너리.

        name, dump_schemas는 접속과 무관한 덤프 설정이므로 제외한다.
        """
        return {
            "host":     self.host,
            "port":     self.port,
            "user":     self.user,
            "password": self.password,
            "dbname":   self.dbname,
        }

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ConnectionInfo":
        """
        딕셔너리로부터 ConnectionInfo를 생성한다. 누락된 키는 기본값을 적용한다.

        @param data  프로파일 JSON 항목
        @returns     ConnectionInfo 인스턴스
        """
        return cls(
            host         = data.get("host", DEFAULT_HOST),
            port         = int(data.get("port", DEFAULT_PORT)),
            user         = data.get("user", DEFAULT_USER),
            password     = data.get("password", ""),
            dbname       = data.get("dbname", DEFAULT_DB),
            name         = data.get("name", ""),
            dump_schemas = data.get("dump_schemas") or None,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ConnectionInfo":
        """
        libpq 표준 환경변수(PGHOST, PGPORT, PGUSER, PGPASSWORD, PGDATABASE)로부터
        접속 정보를 구성한다.

        @param environ  조회할 환경변수 매핑 (기본값: os.environ)
        @returns        ConnectionInfo 인스턴스

        @example
            # PGHOST=db.local PGDATABASE=app
            info = ConnectionInfo.from_env()
            # info.host == "db.local", info.port == 5432
        """
        if environ is None:
            environ = os.environ
        return cls(
            host     = environ.get("PGHOST", DEFAULT_HOST),
            port     = int(environ.get("PGPORT", DEFAULT_PORT)),
            user     = environ.get("PGUSER", DEFAULT_USER),
            password = environ.get("PGPASSWORD", ""),
            dbname   = environ.get("PGDATABASE", DEFAULT_DB),
        )
