"""
services 패키지.

PostgreSQL 접속, 카탈로그 조회, 스키마 덤프, 프로파일 관리 등
비즈니스 로직을 담당하는 서비스 클래스를 제공한다.

DB 커넥션이 필요한 서비스는 psycopg2 connection 객체(또는 이를 감싼
PostgresCatalog)를 생성자에서 주입받는다.

외부 모듈에서는 패키지 레벨 임포트를 사용한다:
    from services import ConnectionService, SchemaDumper
"""

from services.catalog             import PostgresCatalog
from services.connection_service  import ConnectionService
from services.profile_manager     import ProfileManager
from services.schema_dumper       import SchemaDumper
from services.table_emitter       import ColumnPolicy, TableEmitter

__all__ = [
    "ColumnPolicy",
    "ConnectionService",
    "PostgresCatalog",
    "ProfileManager",
    "SchemaDumper",
    "TableEmitter",
]
