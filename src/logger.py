"""
Centralised logging for the mix engine.

Console output is colourised with colorlog; a rotating file log and e-mail
alerts for errors (via the Postmark API) are enabled by environment
variables:

    MIX_LOG_LEVEL            Root level (default INFO)
    MIX_LOG_FILE             Path of the rotating log file
    LOG_FILE_MAX_BYTES       Rotation size (default 10 MB)
    LOG_FILE_BACKUP_COUNT    Rotated files kept (default 5)
    POSTMARK_API_TOKEN, POSTMARK_SENDER_EMAIL, POSTMARK_RECEIVER_EMAILS,
    POSTMARK_ALERT_SUBJECT   Error alert e-mail settings
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

import colorlog
import requests

POSTMARK_EMAIL_URL = 'https://api.postmarkapp.com/email'

CONSOLE_FORMAT = "%(log_color)s%(levelname)s:%(name)s:%(message)s"
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s - (%(filename)s:%(lineno)d)'
LOG_COLORS = {
    'DEBUG': 'bold_blue',
    'INFO': 'bold_green',
    'WARNING': 'bold_yellow',
    'ERROR': 'bold_red',
    'CRITICAL': 'bold_purple',
}


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(colorlog.ColoredFormatter(CONSOLE_FORMAT, log_colors=LOG_COLORS))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    handler = RotatingFileHandler(
        log_file,
        maxBytes=int(os.getenv('LOG_FILE_MAX_BYTES', '10485760')),  # 10 MB
        backupCount=int(os.getenv('LOG_FILE_BACKUP_COUNT', '5')),
    )
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _postmark_handler() -> Optional[logging.Handler]:
    api_token = os.getenv('POSTMARK_API_TOKEN')
    sender = os.getenv('POSTMARK_SENDER_EMAIL')
    receivers = os.getenv('POSTMARK_RECEIVER_EMAILS')
    if not (api_token and sender and receivers):
        return None

    handler = PostmarkHandler(
        api_token=api_token,
        sender_email=sender,
        receiver_emails=[r.strip() for r in receivers.split(',') if r.strip()],
        subject=os.getenv('POSTMARK_ALERT_SUBJECT', 'Mix Engine Error Alert'),
    )
    handler.setLevel(logging.ERROR)
    return handler


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    Args:
        level: Overrides MIX_LOG_LEVEL when given
    """
    root = logging.getLogger()
    root.setLevel((level or os.getenv('MIX_LOG_LEVEL', 'INFO')).upper())

    if root.hasHandlers():
        return

    root.addHandler(_console_handler())

    log_file = os.getenv('MIX_LOG_FILE')
    if log_file:
        root.addHandler(_file_handler(log_file))

    postmark = _postmark_handler()
    if postmark is not None:
        root.addHandler(postmark)


class PostmarkHandler(logging.Handler):
    """Logging handler that e-mails error records through Postmark."""

    def __init__(self, api_token: str, sender_email: str, receiver_emails: List[str], subject: str) -> None:
        """
        Args:
            api_token: Postmark server token
            sender_email: Sender address
            receiver_emails: Recipient addresses
            subject: Subject line for the alert e-mails
        """
        super().__init__()
        self.api_token = api_token
        self.sender_email = sender_email
        self.receiver_emails = receiver_emails
        self.subject = subject

    def emit(self, record: logging.LogRecord) -> None:
        payload = {
            'From': self.sender_email,
            'To': ','.join(self.receiver_emails),
            'Subject': self.subject,
            'TextBody': self.format(record),
        }
        headers = {
            'X-Postmark-Server-Token': self.api_token,
            'Content-Type': 'application/json',
        }
        try:
            response = requests.post(POSTMARK_EMAIL_URL, json=payload, headers=headers, timeout=10)
            response.raise_for_status()
        except requests.RequestException:
            self.handleError(record)
