"""
getpi — keep a fleet of Pi-hole appliances in sync.

One appliance is the primary. Its teleporter backup is downloaded and
pushed to every secondary, then each appliance can be told to rebuild
its gravity database.
"""

__version__ = "0.1.0"

ENCRYPTION_KEY_ENV = "ENCRYPTION_KEY"
CONFIG_ENV = "GETPI_CONFIG"

DEFAULT_ADMIN_PATH = "/admin/"
DEFAULT_BACKUP_FILE = "backup.gz"
DEFAULT_LOG_FILE = "application.log"
