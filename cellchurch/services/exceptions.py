# cellchurch/services/exceptions.py

# --- General Exceptions ---
class UserNotFoundError(Exception):
    """사용자를 찾을 수 없을 때"""
    pass

class NetworkNotFoundError(Exception):
    """네트워크를 찾을 수 없을 때"""
    pass

class CellNotFoundError(Exception):
    """셀을 찾을 수 없을 때"""
    pass

class AnnouncementNotFoundError(Exception):
    """공지사항을 찾을 수 없을 때"""
    pass

# --- Creation/Validation Exceptions ---
class UserCreationError(Exception):
    """사용자 생성 실패 시 (이름 중복 등)"""
    pass

class NetworkCreationError(Exception):
    """네트워크 생성 실패 시"""
    pass

class CellCreationError(Exception):
    """셀 생성 실패 시"""
    pass

class EventCreationError(Exception):
    """행사 생성 실패 시 (종료 일시가 시작보다 빠른 경우 등)"""
    pass

class AnnouncementCreationError(Exception):
    """공지사항 생성 실패 시"""
    pass

class NetworkNotEmptyError(Exception):
    """셀이 남아 있는 네트워크를 삭제하려고 할 때"""
    pass

class InvalidAssignmentError(Exception):
    """역할 또는 소속 배정 값이 올바르지 않을 때"""
    pass

# --- Auth Exceptions ---
class TokenInvalidError(Exception):
    """토큰이 유효하지 않거나 없을 때"""
    pass

class AuthenticationError(Exception):
    """사용자 자격 증명 실패 시"""
    pass

class AuthorizationError(Exception):
    """인증된 사용자가 요청한 작업을 수행할 권한이 없을 때"""
    pass
