"""Code -> description tables used when projecting rows for summarization.

Error codes (`errCd`) are a fixed table. Event codes (`evtCd`) are deployment-specific and can be
loaded from a JSON object file (`{"CODE": "description", ...}`). Unknown codes map to themselves.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

logger = logging.getLogger(__name__)

ERROR_CODES: Mapping[str, str] = MappingProxyType(
    {
        # API/query latency
        "ERRDLAY001": "API 호출 완료 까지 10초 이상 지연",
        "ERRDLAY002": "쿼리 호출 완료 까지 10초 이상 지연",
        "ERRTRYC001": "try catch 에서 걸러진 default 오류",
        # Authentication
        "ERRAUTH001": "auth-login.json 에서 인증 오류 발생 시 등록",
        "ERRAUTH002": "socket-login.json 에서 인증 오류 발생 시 등록",
        # Socket / JWT
        "ERRSOCK001": "JwtToken 갱신 시도 10회 실패",
        "ERRSOCK002": "소켓으로부터 reconnect-fail 메시지 수신 (ERRSOCK006, ERRSOCK007로 세분화됨)",
        "ERRSOCK003": "소켓으로부터 notifyError 수신",
        "ERRSOCK004": "소켓 연결 끊김 확인",
        "ERRSOCK005": "네트워크 연결 끊어짐 case 1",
        "ERRSOCK006": "소켓으로부터 reconnect-fail 메시지 수신",
        "ERRSOCK007": "소켓으로부터 reconnect-fail-not-found-user 메시지 수신",
        "ERRSOCK008": "토큰시간 만료",
        "ERRSOCK009": "focus out > 50분 미사용 > focus in",
        "ERRSOCK010": "reconnect 시도 시 jwt token이 없을경우",
        # Performance
        "ERRPERF001": "런처 메인화면 진입시 3초이상 로딩이 되지 않은 경우",
        # Assessment textbook submission
        "ERRTRACE001": "평가 교과서 제출 오류. 응답값이 Reset 되고, DB에 저장되지 않음",
        "ERRTRACE002": "평가 교과서 제출 오류. 응답값이 Reset 되고, DB에 저장되지 않음",
    }
)


class CodeTable:
    """Lookup table that falls back to the raw code."""

    def __init__(self, descriptions: Mapping[str, str] | None = None) -> None:
        self._descriptions = MappingProxyType(dict(descriptions or {}))

    def describe(self, code: str) -> str:
        return self._descriptions.get(code, code)

    def __len__(self) -> int:
        return len(self._descriptions)


def load_event_codes(path: str | Path | None) -> CodeTable:
    """Load event-code descriptions from a JSON object file.

    A missing path yields an empty table (codes are shown as-is).

    Raises:
        RuntimeError: If the file exists but is not a JSON object of strings.
    """

    if not path:
        return CodeTable()

    try:
        obj = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"Cannot load event codes from {path}: {exc}") from exc

    if not isinstance(obj, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in obj.items()
    ):
        raise RuntimeError(f"Event codes file {path} must be a JSON object of strings")

    logger.info("loaded event codes path=%s count=%d", path, len(obj))
    return CodeTable(obj)


ERROR_CODE_TABLE = CodeTable(ERROR_CODES)
