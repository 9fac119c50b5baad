from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from cellchurch import config

# SQLite는 요청 스레드와 생성 스레드가 다를 수 있으므로 check_same_thread를 해제합니다.
connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)

# autocommit=False, autoflush=False로 설정하여, 명시적으로 commit을 호출해야 DB에 반영됩니다.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 모든 모델 클래스가 상속받을 Base 클래스
Base = declarative_base()
