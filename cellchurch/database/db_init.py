from .database import engine, SessionLocal, Base
from .models import *
from cellchurch.policy.roles import Role
from cellchurch.services.identity_service import hash_password

def initialize_db(admin_username: str = 'admin', admin_password: str = 'admin'):
    """
    DB와 테이블을 생성하고, 비어 있으면 관리자 계정을 삽입합니다.
    관리자 계정은 범위 없는 ADMIN 배정을 하나 가집니다.
    """
    print("DB 초기화 중 (SQLAlchemy 사용)...")

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=engine)
    print("테이블 생성 완료.")

    db = SessionLocal()
    try:
        if db.query(User).first():
            print("기본 데이터가 이미 존재합니다. 초기화를 건너뜁니다.")
            return

        print("기본 데이터 삽입 중...")
        admin_user = User(username=admin_username, name='Administrator', password_hash=hash_password(admin_password))
        db.add(admin_user)
        db.flush()

        db.add(RoleAssignment(user_id=admin_user.id, role=Role.ADMIN))
        db.commit()
        print("DB 초기화 및 기본 데이터 삽입 완료.")

    except Exception as e:
        print(f"오류 발생: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == '__main__':
    initialize_db()
