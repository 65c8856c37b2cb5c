from dotenv import load_dotenv
import os

load_dotenv()

# Table and bucket names
PROFILES_TABLE = 'profiles'
TICKETS_TABLE = 'tickets'
MESSAGES_TABLE = 'messages'
ATTACHMENTS_TABLE = 'attachments'

# Postgres error code for unique_violation
UNIQUE_VIOLATION_CODE = '23505'

# Paths reachable without a session
PUBLIC_PATHS = ('/', '/register', '/forgot-password')


class Credentials:
    def __init__(self) -> None:
        # Supabase (support both naming conventions)
        self.SUPABASE_URL = os.getenv('SUPABASE_URL')
        self.SUPABASE_KEY = os.getenv('SUPABASE_KEY') or os.getenv('SUPABASE_ANON_KEY')
        # Storage
        self.ATTACHMENTS_BUCKET = os.getenv('ATTACHMENTS_BUCKET', 'attachments')
        # Password reset links land here
        self.SITE_URL = os.getenv('SITE_URL', 'http://localhost:5173')
        # Logging
        self.LOG_LEVEL = os.getenv('SUPPORTDESK_LOG_LEVEL', 'INFO')
        self.LOG_FILE = os.getenv('SUPPORTDESK_LOG_FILE')

    def validate_required_credentials(self):
        """Validate that the Supabase connection settings are present."""
        required_credentials = ['SUPABASE_URL', 'SUPABASE_KEY']

        missing = [cred for cred in required_credentials
                   if not getattr(self, cred)]

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
