"""Constants for InboxMaid."""

from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".inbox-maid"
LOG_DIR = CONFIG_DIR / "logs"
LOG_FILE_PREFIX = "inbox_maid"

# --- IMAP ---
DEFAULT_IMAP_SERVER = "imap.mail.yahoo.com"
DEFAULT_IMAP_PORT = 993  # IMAP over SSL
DEFAULT_MAILBOX = "INBOX"
IMAP_TIMEOUT = 30  # seconds per socket operation
UNSEEN_CRITERIA = "UNSEEN"
HEADER_FETCH_SPEC = "(BODY.PEEK[HEADER])"  # PEEK keeps the \Seen flag untouched
DELETED_FLAG = r"(\Deleted)"

# --- Retries (transient IMAP timeouts) ---
RETRY_ATTEMPTS = 3
RETRY_WAIT_MIN = 1
RETRY_WAIT_MAX = 10

# --- Newsletter detection ---
UNSUBSCRIBE_HEADER = "List-Unsubscribe"
WEB_LINK_PREFIX = "http"
MAILTO_PREFIX = "mailto:"

# --- Workflow ---
DEFAULT_SCAN_COUNT = 100
MODE_INTERACTIVE = "1"
MODE_BATCH = "2"
