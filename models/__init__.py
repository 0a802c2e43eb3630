"""
models 패키지.

접속 정보 및 스키마 메타데이터 값 객체를 정의한다.

외부 모듈에서는 패키지 레벨 임포트를 사용한다:
    from models import ConnectionInfo, Column, UniqueConstraint
"""

from models.connection_info import ConnectionInfo
from models.schema_objects  import (
    CheckConstraint,
    Column,
    ExclusionConstraint,
    ForeignKey,
    Index,
    UniqueConstraint,
)

__all__ = [
    "CheckConstraint",
    "Column",
    "ConnectionInfo",
    "ExclusionConstraint",
    "ForeignKey",
    "Index",
    "UniqueConstraint",
]
