from .user import User
from .network import Network
from .cell import Cell
from .role_assignment import RoleAssignment
from .membership import Membership
from .meeting import Meeting
from .event import Event
from .announcement import Announcement

__all__ = ["User", "Network", "Cell", "RoleAssignment", "Membership", "Meeting", "Event", "Announcement"]
