# app/workflows/routes.py

from flask import jsonify, request
from flask_login import login_required, current_user

from app.workflows import bp
from app.workflows import service
from app.workflows.service import Actor
from app.auth.decorators import admin_required
from app.extensions import limiter


def _actor():
    return Actor.from_user(current_user)


def _json_body():
    return request.get_json(silent=True)


def _page_meta(pagination):
    return {
        'page': pagination.page,
        'limit': pagination.per_page,
        'total': pagination.total,
        'pages': pagination.pages
    }


def _transition_response(item):
    return jsonify({'ok': True, 'id': item.id, 'status': item.status})


#######################################################################
#  TRANSFER REQUESTS
#######################################################################

@bp.route('/transfer-requests', methods=['GET'])
@login_required
def list_transfer_requests():
    """List transfer requests visible to the current user."""
    pagination = service.list_requests(_actor(), request.args.to_dict())
    return jsonify({
        'data': [item.to_summary() for item in pagination.items],
        'meta': _page_meta(pagination)
    })


@bp.route('/transfer-requests', methods=['POST'])
@login_required
@limiter.limit("30 per hour")
def create_transfer_request():
    """Submit a new transfer request."""
    item = service.create_request(_actor(), _json_body())
    return jsonify({'id': item.id, 'status': item.status}), 201


@bp.route('/transfer-requests/stats', methods=['GET'])
@login_required
def transfer_request_stats():
    return jsonify({'data': service.workflow_stats()})


@bp.route('/transfer-requests/<int:request_id>', methods=['GET'])
@login_required
def get_transfer_request(request_id):
    item = service.get_request(_actor(), request_id)
    return jsonify({'data': item.to_dict()})


@bp.route('/transfer-requests/<int:request_id>/history', methods=['GET'])
@login_required
def transfer_request_history(request_id):
    logs = service.request_history(_actor(), request_id)
    return jsonify({'data': [log.to_dict() for log in logs]})


@bp.route('/transfer-requests/<int:request_id>/approve', methods=['POST'])
@login_required
@limiter.limit("60 per hour")
def approve_transfer_request(request_id):
    item = service.approve(_actor(), request_id, _json_body())
    return _transition_response(item)


@bp.route('/transfer-requests/<int:request_id>/reject', methods=['POST'])
@login_required
@limiter.limit("60 per hour")
def reject_transfer_request(request_id):
    item = service.reject(_actor(), request_id, _json_body())
    return _transition_response(item)


@bp.route('/transfer-requests/<int:request_id>/request-changes', methods=['POST'])
@login_required
@limiter.limit("60 per hour")
def request_transfer_changes(request_id):
    item = service.request_changes(_actor(), request_id, _json_body())
    return _transition_response(item)


@bp.route('/transfer-requests/<int:request_id>/resubmit', methods=['POST'])
@login_required
@limiter.limit("30 per hour")
def resubmit_transfer_request(request_id):
    item = service.resubmit(_actor(), request_id, _json_body())
    return _transition_response(item)


@bp.route('/transfer-requests/<int:request_id>/assign-manager', methods=['POST'])
@login_required
@limiter.limit("60 per hour")
def assign_transfer_manager(request_id):
    item = service.assign_manager(_actor(), request_id, _json_body())
    return jsonify({'ok': True, 'id': item.id, 'status': item.status, 'manager_id': item.manager_id})


#######################################################################
#  APPROVERS & AUDIT TRAIL
#######################################################################

@bp.route('/approvers', methods=['GET'])
@login_required
def list_approvers():
    """Users selectable as supervisor or manager."""
    users = service.list_approvers(request.args.get('role', ''))
    return jsonify({'data': [u.to_dict() for u in users]})


@bp.route('/audit-logs', methods=['GET'])
@login_required
@admin_required
def audit_logs():
    """List workflow audit trail entries."""
    page = request.args.get('page', 1, type=int)
    entity_id = request.args.get('entity_id', type=int)
    logs = service.list_audit_logs(page=page, entity_id=entity_id)
    return jsonify({
        'data': [log.to_dict() for log in logs.items],
        'meta': _page_meta(logs)
    })
