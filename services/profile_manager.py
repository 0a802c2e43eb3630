"""
덤프 프로파일 관리 서비스.

JSON 파일 기반으로 이름 붙은 접속 정보 + 덤프 대상 스키마 설정을 저장/조회한다.
CI나 로컬 환경에서 "staging", "local" 같은 이름으로 덤프 대상을 고를 때 사용한다.

저장 형식:
    profiles.json - JSON 배열 형태로 ConnectionInfo 딕셔너리를 순서대로 저장.
    [
        {"host": "10.0.0.1", "port": 5432, "user": "app", "password": "...",
         "dbname": "app", "name": "staging", "dump_schemas": "public, sales"},
        ...
    ]

파일 위치:
    config.PROFILE_FILE (기본: 실행 파일과 동일 디렉토리의 profiles.json)

사용처:
    - main.run() : --profile 옵션으로 지정한 프로파일 로드
"""

import json
import os
from typing import List, Optional

from config                 import PROFILE_FILE
from models.connection_info import ConnectionInfo


class ProfileManager:
    """
    로컬 JSON 파일 기반 덤프 프로파일 저장소.

    내부 상태:
        _file_path : 프로파일 JSON 파일의 절대 경로
    """

    def __init__(self, file_path: str = PROFILE_FILE):
        self._file_path = file_path

    def load_all(self) -> List[ConnectionInfo]:
        """
        저장된 모든 프로파일을 로드한다.

        파일이 존재하지 않거나 파싱 실패 시 빈 리스트를 반환한다.

        @returns  ConnectionInfo 리스트 (저장 순서 유지)
        """
        return [ConnectionInfo.from_dict(item) for item in self._read_file()]

    def get(self, name: str) -> Optional[ConnectionInfo]:
        """
        이름으로 프로파일을 조회한다.

        @param name  프로파일 이름
        @returns     일치하는 ConnectionInfo 또는 None
        """
        for item in self._read_file():
            if item.get("name") == name:
                return ConnectionInfo.from_dict(item)
        return None

    def save(self, info: ConnectionInfo) -> None:
        """
        프로파일을 저장한다. 동일한 name이 존재하면 해당 항목을 덮어쓴다.

        @param info  저장할 프로파일 (name 필드 필수)
        @throws      ValueError name이 비어있을 경우

        @example
            manager.save(ConnectionInfo(host="10.0.0.1", name="staging", dump_schemas="public"))
        """
        if not info.name:
            raise ValueError("프로파일 이름이 지정되지 않았습니다.")

        data = self._read_file()

        # 동일 name이 있으면 그 자리에서 덮어쓰고, 없으면 끝에 추가
        for i, item in enumerate(data):
            if item.get("name") == info.name:
                data[i] = info.to_dict()
                break
        else:
            data.append(info.to_dict())

        self._write_file(data)

    # ------------------------------------------------------------------
    # Private Methods
    # ------------------------------------------------------------------

    def _read_file(self) -> List[dict]:
        """
        JSON 파일에서 프로파일 목록을 읽는다.

        파일이 없거나, JSON 파싱에 실패하거나, 최상위 구조가 배열이 아니면 빈 리스트.
        """
        if not os.path.exists(self._file_path):
            return []
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
                return data if isinstance(data, list) else []
        except (json.JSONDecodeError, IOError):
            return []

    def _write_file(self, data: List[dict]) -> None:
        with open(self._file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
