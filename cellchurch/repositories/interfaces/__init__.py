from .user import IUserRepository
from .network import INetworkRepository
from .cell import ICellRepository
from .role_assignment import IRoleAssignmentRepository
from .membership import IMembershipRepository
from .meeting import IMeetingRepository
from .event import IEventRepository
from .announcement import IAnnouncementRepository
