# app/notifications.py

import smtplib
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app


def _build_message(sender, recipient, subject, body_html):
    msg = MIMEMultipart('alternative')
    msg['From'] = sender
    msg['To'] = recipient
    msg['Subject'] = subject
    msg.attach(MIMEText(body_html, 'html'))
    return msg


def _deliver(config, msg):
    """Send ``msg`` over SMTP using the mail settings in ``config``."""
    server = smtplib.SMTP(config['MAIL_SERVER'], config['MAIL_PORT'],
                          timeout=config.get('MAIL_TIMEOUT', 30))
    try:
        server.ehlo()
        if config.get('MAIL_USE_TLS'):
            server.starttls()
            server.ehlo()
        if config.get('MAIL_USERNAME') and config.get('MAIL_PASSWORD'):
            server.login(config['MAIL_USERNAME'], config['MAIL_PASSWORD'])
        server.send_message(msg)
    finally:
        server.quit()


def _deliver_async(app, msg):
    with app.app_context():
        try:
            _deliver(app.config, msg)
            app.logger.info(f"Workflow notification sent to {msg['To']}")
        except (smtplib.SMTPException, OSError) as e:
            app.logger.warning(f"Workflow notification to {msg['To']} failed: {e}")


def send_workflow_notification(recipient_address, subject, body_html):
    """Send a workflow e-mail.

    Delivery is best effort. With NOTIFICATIONS_ASYNC the SMTP exchange
    happens on a background thread and this returns immediately.

    Args:
        recipient_address: E-mail address of the recipient
        subject: Message subject
        body_html: HTML body

    Returns:
        bool: False when mail is suppressed or not configured
    """
    config = current_app.config
    if not recipient_address:
        return False
    if config.get('MAIL_SUPPRESS_SEND') or not config.get('MAIL_SERVER'):
        current_app.logger.info(
            f"Mail disabled, skipped notification '{subject}' to {recipient_address}"
        )
        return False

    msg = _build_message(config['MAIL_DEFAULT_SENDER'], recipient_address, subject, body_html)

    if config.get('NOTIFICATIONS_ASYNC'):
        app = current_app._get_current_object()
        thread = threading.Thread(target=_deliver_async, args=(app, msg), daemon=True)
        thread.start()
    else:
        _deliver(config, msg)
    return True
