# cellchurch/config.py
import os

# 환경 변수로 덮어쓸 수 있는 기본 설정값
DATABASE_URL = os.environ.get("CELLCHURCH_DATABASE_URL", "sqlite:///cellchurch.db")

SERVER_HOST = os.environ.get("CELLCHURCH_HOST", "")
SERVER_PORT = int(os.environ.get("CELLCHURCH_PORT", "8000"))

# 인증 토큰 유효 시간 (분)
TOKEN_TTL_MINUTES = int(os.environ.get("CELLCHURCH_TOKEN_TTL_MINUTES", "60"))
