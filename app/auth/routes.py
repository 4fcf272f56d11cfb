from flask import jsonify, current_app
from flask_login import current_user, login_user, logout_user, login_required
from app.auth import bp
from app.auth.forms import LoginForm
from app.errors import Unauthorized, ValidationFailed
from app.models.user import User
from app.extensions import limiter


@bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute")  # Protect against brute force
def login():
    form = LoginForm(meta={'csrf': False})
    if not form.validate_on_submit():
        raise ValidationFailed(details=form.errors)

    user = User.query.filter_by(username=form.username.data).first()
    if user is None or not user.is_active or not user.check_password(form.password.data):
        current_app.logger.info(f'Failed login for {form.username.data}')
        raise Unauthorized('Invalid username or password')

    login_user(user, remember=form.remember_me.data)
    user.update_last_login()
    return jsonify({'data': user.to_dict()})


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'ok': True})


@bp.route('/me')
@login_required
def me():
    return jsonify({'data': current_user.to_dict()})
