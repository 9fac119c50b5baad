# cellchurch/app.py
from wsgiref.simple_server import make_server
import json
import logging
import re
from datetime import datetime
from urllib.parse import parse_qs

from cellchurch import config
from cellchurch.database.database import SessionLocal
from cellchurch.repositories.sqlalchemy.sqlalchemy_user_repository import SqlalchemyUserRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_network_repository import SqlalchemyNetworkRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_cell_repository import SqlalchemyCellRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_role_assignment_repository import SqlalchemyRoleAssignmentRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_membership_repository import SqlalchemyMembershipRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_meeting_repository import SqlalchemyMeetingRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_event_repository import SqlalchemyEventRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_announcement_repository import SqlalchemyAnnouncementRepository
from cellchurch.services.identity_service import IdentityService
from cellchurch.services.assignment_service import AssignmentService
from cellchurch.services.organization_service import OrganizationService
from cellchurch.services.meeting_service import MeetingService
from cellchurch.services.event_service import EventService
from cellchurch.services.announcement_service import AnnouncementService
from cellchurch.services.report_service import ReportService
from cellchurch.services.exceptions import *

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------
## 요청 처리 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        return json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise ValueError("Invalid or missing JSON body.")

def get_since_param(environ):
    """쿼리 문자열의 since(ISO 8601) 값을 datetime으로 변환합니다. 없으면 None."""
    values = parse_qs(environ.get("QUERY_STRING", "")).get("since")
    return datetime.fromisoformat(values[0]) if values else None

def get_context(environ):
    """X-Auth-Token 헤더로 요청자의 인가 컨텍스트를 만듭니다. 요청당 한 번만 계산합니다."""
    if 'authz.context' not in environ:
        auth_token = environ.get('HTTP_X_AUTH_TOKEN')
        if not auth_token:
            raise TokenInvalidError("Missing 'X-Auth-Token' header.")
        environ['authz.context'] = environ['services']['identity'].context_for_token(auth_token)
    return environ['authz.context']

def handle_exception(e):
    error_map = {
        TokenInvalidError: "401 Unauthorized",
        AuthenticationError: "401 Unauthorized",
        AuthorizationError: "403 Forbidden",
        UserNotFoundError: "404 Not Found",
        NetworkNotFoundError: "404 Not Found",
        CellNotFoundError: "404 Not Found",
        AnnouncementNotFoundError: "404 Not Found",
        ValueError: "400 Bad Request",
        TypeError: "400 Bad Request",
        UserCreationError: "400 Bad Request",
        NetworkCreationError: "400 Bad Request",
        CellCreationError: "400 Bad Request",
        EventCreationError: "400 Bad Request",
        AnnouncementCreationError: "400 Bad Request",
        NetworkNotEmptyError: "400 Bad Request",
        InvalidAssignmentError: "400 Bad Request",
    }
    status = error_map.get(type(e), "500 Internal Server Error")
    if isinstance(e, AuthorizationError):
        logger.warning("Authorization denied: %s", e)
        # 거부 사유는 응답에 노출하지 않습니다.
        return status, json.dumps({"error": "Unauthorized"})
    if status.startswith("500"):
        logger.exception("Unhandled error while processing request")
    return status, json.dumps({"error": str(e)})

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

ROUTES = []

def route(method, pattern):
    def decorator(handler):
        ROUTES.append((method, re.compile(pattern), handler))
        return handler
    return decorator

def build_services(db_session):
    user_repo = SqlalchemyUserRepository(db_session)
    network_repo = SqlalchemyNetworkRepository(db_session)
    cell_repo = SqlalchemyCellRepository(db_session)
    role_repo = SqlalchemyRoleAssignmentRepository(db_session)
    membership_repo = SqlalchemyMembershipRepository(db_session)
    meeting_repo = SqlalchemyMeetingRepository(db_session)
    event_repo = SqlalchemyEventRepository(db_session)
    announcement_repo = SqlalchemyAnnouncementRepository(db_session)

    return {
        'identity': IdentityService(user_repo, role_repo),
        'assignment': AssignmentService(user_repo, network_repo, cell_repo, role_repo, membership_repo),
        'organization': OrganizationService(network_repo, cell_repo, role_repo, user_repo),
        'meeting': MeetingService(meeting_repo, cell_repo),
        'event': EventService(event_repo),
        'announcement': AnnouncementService(announcement_repo),
        'report': ReportService(meeting_repo, network_repo, cell_repo),
    }

def application(environ, start_response):
    db_session = SessionLocal()
    try:
        environ['services'] = build_services(db_session)

        path = environ.get("PATH_INFO", "")
        method = environ.get("REQUEST_METHOD", "")

        handler, path_args = None, []
        for route_method, pattern, route_handler in ROUTES:
            if method == route_method and (match := pattern.match(path)):
                handler, path_args = route_handler, match.groups()
                break

        if handler:
            status, response_body = handler(environ, *path_args)
        else:
            status, response_body = '404 Not Found', json.dumps({'error': 'Not Found'})

    except Exception as e:
        status, response_body = handle_exception(e)
    finally:
        db_session.close()

    start_response(status, [("Content-Type", "application/json")])
    return [response_body.encode("utf-8")]

# --------------------------------------------------------------------------
## 핸들러 함수
# --------------------------------------------------------------------------

@route('POST', r'^/v1/auth/tokens$')
def auth_tokens_handler(environ, *args):
    data = get_request_data(environ)
    token = environ['services']['identity'].authenticate(data.get('username'), data.get('password'))
    return '201 Created', json.dumps(token)

@route('POST', r'^/v1/users$')
def create_user_handler(environ, *args):
    ctx = get_context(environ)
    data = get_request_data(environ)
    user = environ['services']['identity'].create_user(ctx, **data)
    return '201 Created', json.dumps(user)

@route('GET', r'^/v1/users$')
def list_users_handler(environ, *args):
    ctx = get_context(environ)
    users = environ['services']['identity'].list_users(ctx)
    return '200 OK', json.dumps({"users": users})

@route('GET', r'^/v1/users/([0-9]+)$')
def get_user_handler(environ, user_id):
    ctx = get_context(environ)
    user = environ['services']['identity'].get_user(ctx, int(user_id))
    return '200 OK', json.dumps(user)

@route('DELETE', r'^/v1/users/([0-9]+)$')
def delete_user_handler(environ, user_id):
    ctx = get_context(environ)
    environ['services']['identity'].soft_delete_user(ctx, int(user_id))
    return '204 No Content', ''

@route('POST', r'^/v1/users/([0-9]+)/restore$')
def restore_user_handler(environ, user_id):
    ctx = get_context(environ)
    user = environ['services']['identity'].restore_user(ctx, int(user_id))
    return '200 OK', json.dumps(user)

@route('GET', r'^/v1/users/([0-9]+)/roles$')
def list_user_roles_handler(environ, user_id):
    ctx = get_context(environ)
    assignments = environ['services']['assignment'].list_user_assignments(ctx, int(user_id))
    return '200 OK', json.dumps({"assignments": assignments})

@route('PUT', r'^/v1/users/([0-9]+)/role$')
def reconcile_role_handler(environ, user_id):
    ctx = get_context(environ)
    data = get_request_data(environ)
    result = environ['services']['assignment'].reconcile_user_role(
        ctx, int(user_id), data.get('role'), data.get('network_id'), data.get('cell_id')
    )
    return '200 OK', json.dumps(result)

@route('GET', r'^/v1/users/([0-9]+)/memberships$')
def list_memberships_handler(environ, user_id):
    ctx = get_context(environ)
    memberships = environ['services']['assignment'].list_memberships(ctx, int(user_id))
    return '200 OK', json.dumps({"memberships": memberships})

@route('PUT', r'^/v1/cells/([0-9]+)/members/([0-9]+)$')
def assign_membership_handler(environ, cell_id, user_id):
    ctx = get_context(environ)
    membership = environ['services']['assignment'].assign_membership(ctx, int(user_id), int(cell_id))
    return '200 OK', json.dumps(membership)

@route('DELETE', r'^/v1/cells/([0-9]+)/members/([0-9]+)$')
def remove_membership_handler(environ, cell_id, user_id):
    ctx = get_context(environ)
    environ['services']['assignment'].remove_membership(ctx, int(user_id), int(cell_id))
    return '204 No Content', ''

@route('POST', r'^/v1/networks$')
def create_network_handler(environ, *args):
    ctx = get_context(environ)
    data = get_request_data(environ)
    network = environ['services']['organization'].create_network(ctx, **data)
    return '201 Created', json.dumps(network)

@route('GET', r'^/v1/networks$')
def list_networks_handler(environ, *args):
    ctx = get_context(environ)
    networks = environ['services']['organization'].list_networks(ctx)
    return '200 OK', json.dumps({"networks": networks})

@route('GET', r'^/v1/networks/([0-9]+)$')
def get_network_handler(environ, network_id):
    ctx = get_context(environ)
    network = environ['services']['organization'].get_network(ctx, int(network_id))
    return '200 OK', json.dumps(network)

@route('PUT', r'^/v1/networks/([0-9]+)/leader$')
def set_network_leader_handler(environ, network_id):
    ctx = get_context(environ)
    data = get_request_data(environ)
    environ['services']['organization'].set_network_leader(ctx, int(network_id), data.get('user_id'))
    return '204 No Content', ''

@route('DELETE', r'^/v1/networks/([0-9]+)$')
def delete_network_handler(environ, network_id):
    ctx = get_context(environ)
    environ['services']['organization'].delete_network(ctx, int(network_id))
    return '204 No Content', ''

@route('POST', r'^/v1/networks/([0-9]+)/cells$')
def create_cell_handler(environ, network_id):
    ctx = get_context(environ)
    data = get_request_data(environ)
    cell = environ['services']['organization'].create_cell(ctx, int(network_id), **data)
    return '201 Created', json.dumps(cell)

@route('GET', r'^/v1/cells$')
def list_cells_handler(environ, *args):
    ctx = get_context(environ)
    cells = environ['services']['organization'].list_cells(ctx)
    return '200 OK', json.dumps({"cells": cells})

@route('GET', r'^/v1/cells/([0-9]+)$')
def get_cell_handler(environ, cell_id):
    ctx = get_context(environ)
    cell = environ['services']['organization'].get_cell(ctx, int(cell_id))
    return '200 OK', json.dumps(cell)

@route('PUT', r'^/v1/cells/([0-9]+)/leader$')
def set_cell_leader_handler(environ, cell_id):
    ctx = get_context(environ)
    data = get_request_data(environ)
    environ['services']['organization'].set_cell_leader(ctx, int(cell_id), data.get('user_id'))
    return '204 No Content', ''

@route('DELETE', r'^/v1/cells/([0-9]+)$')
def delete_cell_handler(environ, cell_id):
    ctx = get_context(environ)
    environ['services']['organization'].delete_cell(ctx, int(cell_id))
    return '204 No Content', ''

@route('POST', r'^/v1/cells/([0-9]+)/meetings$')
def log_meeting_handler(environ, cell_id):
    ctx = get_context(environ)
    data = get_request_data(environ)
    meeting = environ['services']['meeting'].log_meeting(ctx, int(cell_id), **data)
    return '201 Created', json.dumps(meeting)

@route('GET', r'^/v1/cells/([0-9]+)/meetings$')
def list_meetings_handler(environ, cell_id):
    ctx = get_context(environ)
    meetings = environ['services']['meeting'].list_meetings(ctx, int(cell_id))
    return '200 OK', json.dumps({"meetings": meetings})

@route('POST', r'^/v1/events$')
def create_event_handler(environ, *args):
    ctx = get_context(environ)
    data = get_request_data(environ)
    event = environ['services']['event'].create_event(ctx, **data)
    return '201 Created', json.dumps(event)

@route('GET', r'^/v1/events$')
def list_events_handler(environ, *args):
    ctx = get_context(environ)
    events = environ['services']['event'].list_events(ctx)
    return '200 OK', json.dumps({"events": events})

@route('POST', r'^/v1/announcements$')
def create_announcement_handler(environ, *args):
    ctx = get_context(environ)
    data = get_request_data(environ)
    announcement = environ['services']['announcement'].create_announcement(ctx, **data)
    return '201 Created', json.dumps(announcement)

@route('GET', r'^/v1/announcements$')
def list_announcements_handler(environ, *args):
    ctx = get_context(environ)
    announcements = environ['services']['announcement'].list_announcements(ctx)
    return '200 OK', json.dumps({"announcements": announcements})

@route('POST', r'^/v1/announcements/([0-9]+)/publish$')
def publish_announcement_handler(environ, announcement_id):
    ctx = get_context(environ)
    announcement = environ['services']['announcement'].publish_announcement(ctx, int(announcement_id))
    return '200 OK', json.dumps(announcement)

@route('GET', r'^/v1/reports/meetings$')
def global_meeting_report_handler(environ, *args):
    ctx = get_context(environ)
    report = environ['services']['report'].meeting_summary(ctx, "global", since=get_since_param(environ))
    return '200 OK', json.dumps(report)

@route('GET', r'^/v1/reports/networks/([0-9]+)/meetings$')
def network_meeting_report_handler(environ, network_id):
    ctx = get_context(environ)
    report = environ['services']['report'].meeting_summary(
        ctx, "network", int(network_id), since=get_since_param(environ)
    )
    return '200 OK', json.dumps(report)

@route('GET', r'^/v1/reports/cells/([0-9]+)/meetings$')
def cell_meeting_report_handler(environ, cell_id):
    ctx = get_context(environ)
    report = environ['services']['report'].meeting_summary(
        ctx, "cell", int(cell_id), since=get_since_param(environ)
    )
    return '200 OK', json.dumps(report)

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        with make_server(config.SERVER_HOST, config.SERVER_PORT, application) as httpd:
            print(f"Serving cell church admin API on port {config.SERVER_PORT}...")
            httpd.serve_forever()
    except KeyboardInterrupt:
        print("Server stopped.")
