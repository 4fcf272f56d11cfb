# app/socket_events.py

import functools

from flask import current_app
from flask_login import current_user
from flask_socketio import join_room
from redis.exceptions import RedisError

from app.extensions import socketio


APPROVERS_ROOM = 'approvers'


def user_room(user_id):
    return f'user:{user_id}'


def handle_emit_error(f):
    """Log and swallow failures of live-update emits."""
    @functools.wraps(f)
    def wrapped(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except RedisError as e:
            current_app.logger.error(f"Redis error in socket event: {str(e)}")
        except Exception as e:
            current_app.logger.error(f"Unexpected error in socket event: {str(e)}")
        return None
    return wrapped


@socketio.on('connect')
def handle_connect():
    """Accept only logged-in clients and subscribe them to their rooms."""
    if not current_user.is_authenticated:
        return False
    join_room(user_room(current_user.id))
    if current_user.is_approver() or current_user.is_admin():
        join_room(APPROVERS_ROOM)
    current_app.logger.info(f'Client connected: {current_user.username}')
    return True


@socketio.on('disconnect')
def handle_disconnect(*args):
    if current_user.is_authenticated:
        current_app.logger.info(f'Client disconnected: {current_user.username}')


@handle_emit_error
def notify_transfer_update(request_id, owner_id, action, data):
    """
    Push a transfer request change to its owner and to the approvers
    Args:
        request_id: Changed request's ID
        owner_id: ID of the requester who created it
        action: Workflow action name, e.g. 'Approve'
        data: Change details
    """
    payload = {
        'request_id': request_id,
        'action': action,
        'data': data
    }
    socketio.emit('transfer_request_update', payload, to=user_room(owner_id))
    socketio.emit('transfer_request_update', payload, to=APPROVERS_ROOM)
