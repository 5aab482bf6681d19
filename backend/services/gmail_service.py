import os
import base64
import logging
from email.mime.text import MIMEText
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from flask import current_app

logger = logging.getLogger(__name__)

# If modifying these SCOPES, delete the token file.
SCOPES = ['https://www.googleapis.com/auth/gmail.send']

class GmailService:
    """Gmail API service for account e-mails (confirmation links)"""

    def __init__(self, token_path=None, sender=None):
        self.token_path = token_path or current_app.config['GMAIL_TOKEN_PATH']
        self.sender = sender or current_app.config.get('MAIL_SENDER', 'me')
        self.service = self._get_service()

    def _get_service(self):
        """Authenticate with the stored token and return the Gmail service"""
        if not os.path.exists(self.token_path):
            logger.warning(f"Gmail token not found at {self.token_path}; mail delivery disabled")
            return None

        try:
            creds = Credentials.from_authorized_user_file(self.token_path, SCOPES)
        except (ValueError, OSError) as e:
            logger.error(f"Error loading token: {e}")
            return None

        if not creds.valid:
            if creds.expired and creds.refresh_token:
                try:
                    creds.refresh(Request())
                except GoogleAuthError as e:
                    logger.error(f"Error refreshing token: {e}")
                    return None
                # Save the refreshed credentials for the next run
                with open(self.token_path, 'w') as token:
                    token.write(creds.to_json())
            else:
                logger.error("Gmail token is invalid and cannot be refreshed")
                return None

        try:
            return build('gmail', 'v1', credentials=creds, cache_discovery=False)
        except Exception as e:
            logger.error(f"Error building Gmail service: {e}")
        return None

    def send_email(self, to, subject, body):
        """Compose and send a plain-text message via Gmail API"""
        if not self.service:
            logger.error("Gmail service not initialized.")
            return False, "Gmail API not authenticated."

        try:
            message = MIMEText(body)
            message['to'] = to
            message['from'] = self.sender
            message['subject'] = subject

            # Encode the message and send
            raw_message = base64.urlsafe_b64encode(message.as_bytes()).decode('utf-8')
            sent_message = self.service.users().messages().send(userId='me', body={'raw': raw_message}).execute()

            logger.info(f"Email sent successfully to {to}. Message ID: {sent_message['id']}")
            return True, sent_message['id']

        except Exception as e:
            logger.error(f"Error sending email: {e}")
            return False, str(e)
