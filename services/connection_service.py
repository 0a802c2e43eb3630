"""
PostgreSQL 접속 관리 서비스.

psycopg2를 통한 덤프용 커넥션 생성과 정리를 담당한다.
단일 활성 커넥션(Single Active Connection) 패턴을 사용하며,
새 접속 시 기존 커넥션은 자동으로 닫힌다.

덤프는 카탈로그 조회와 search_path 변경만 수행하므로 autocommit 세션으로 연결한다.
(search_path 변경이 트랜잭션 롤백으로 되돌려지지 않도록)

사용처:
    - main.run() : 접속 후 SchemaDumper에 커넥션 전달, 종료 시 close()
"""

from typing import Optional

import psycopg2
import psycopg2.extensions

from models.connection_info import ConnectionInfo


class ConnectionService:
    """
    PostgreSQL 서버 접속을 관리한다.

    내부 상태:
        _conn : 현재 활성 psycopg2 커넥션 또는 None
    """

    def __init__(self):
        self._conn: Optional[psycopg2.extensions.connection] = None

    @property
    def connection(self) -> psycopg2.extensions.connection:
        """
        현재 활성 커넥션을 반환한다.

        @throws RuntimeError 미접속 상태에서 호출 시
        """
        if not self.is_connected:
            raise RuntimeError("DB에 접속되어 있지 않습니다.")
        return self._conn

    @property
    def is_connected(self) -> bool:
        """psycopg2 connection.closed == 0 이면 열린 상태로 판단한다."""
        if self._conn is None:
            return False
        return self._conn.closed == 0

    def connect(self, info: ConnectionInfo) -> psycopg2.extensions.connection:
        """
        주어진 접속 정보로 PostgreSQL에 연결한다.

        기존 커넥션이 있으면 먼저 닫고, 새 커넥션은 autocommit=True로 설정한다.

        @param info  접속 정보
        @returns     생성된 psycopg2 connection 객체
        @throws      psycopg2.OperationalError 접속 실패 시

        @example
            service = ConnectionService()
            conn    = service.connect(ConnectionInfo.from_env())
        """
        self.close()
        self._conn = psycopg2.connect(**info.dsn)
        self._conn.set_session(autocommit=True)
        return self._conn

    def close(self) -> None:
        """
        활성 커넥션을 닫고 내부 참조를 None으로 초기화한다.

        이미 닫힌 커넥션이거나 None인 경우에도 안전하게 처리한다.
        """
        if self._conn is not None:
            if self._conn.closed == 0:
                self._conn.close()
            self._conn = None

    def __enter__(self) -> "ConnectionService":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False
