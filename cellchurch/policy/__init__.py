from .roles import Role, Admin, NetworkLeader, CellLeader, Member, Assignment, assignment_from_record, parse_role
from .context import AuthorizationContext, ResourceScope
from .rbac import *
