# cellchurch/scripts/cleanup_duplicate_roles.py
"""
(user, role)이 중복된 역할 배정을 정리합니다.
원자적 교체가 도입되기 전에 동시 수정으로 생긴 중복 행을 한 번 정리하는 용도입니다.

사용법: python -m cellchurch.scripts.cleanup_duplicate_roles
"""
import sys

from cellchurch.database.database import SessionLocal
from cellchurch.repositories.sqlalchemy.sqlalchemy_user_repository import SqlalchemyUserRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_network_repository import SqlalchemyNetworkRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_cell_repository import SqlalchemyCellRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_role_assignment_repository import SqlalchemyRoleAssignmentRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_membership_repository import SqlalchemyMembershipRepository
from cellchurch.services.assignment_service import AssignmentService

def main() -> int:
    db = SessionLocal()
    try:
        role_repo = SqlalchemyRoleAssignmentRepository(db)
        service = AssignmentService(
            SqlalchemyUserRepository(db),
            SqlalchemyNetworkRepository(db),
            SqlalchemyCellRepository(db),
            role_repo,
            SqlalchemyMembershipRepository(db),
        )

        print("중복 역할 배정을 검색합니다...")
        report = service.deduplicate_role_assignments()
        for entry in report:
            print(f"User {entry['user_id']} - {entry['role']} (network {entry['network_id']}, cell {entry['cell_id']}): "
                  f"kept {entry['kept']}, deleted {entry['deleted']}")

        remaining = role_repo.find_duplicates()
        if remaining:
            print(f"정리 후에도 중복이 {len(remaining)}건 남아 있습니다.", file=sys.stderr)
            return 1
        print(f"정리 완료. ({len(report)}건 처리)")
        return 0
    except Exception as e:
        print(f"오류 발생: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()

if __name__ == '__main__':
    sys.exit(main())
