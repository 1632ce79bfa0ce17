"""Application-wide constants."""

# API Configuration
API_VERSION = "v1"
API_PREFIX = f"/api/{API_VERSION}"

# Script code limits
MAX_CODE_LENGTH = 2_000_000  # characters
MAX_CHANGELOG_LENGTH = 500
MAX_NAME_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 500
MAX_ADDITIONAL_INFO_LENGTH = 50_000

# Screenshots
MAX_SCREENSHOT_SIZE_MB = 1
MAX_SCREENSHOT_SIZE_BYTES = MAX_SCREENSHOT_SIZE_MB * 1024 * 1024  # 1MB
MAX_SCREENSHOTS_PER_VERSION = 5
MAX_UPLOAD_FILENAME_LENGTH = 50

ALLOWED_IMAGE_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
]

# Script types
SCRIPT_TYPE_PUBLIC = 1
SCRIPT_TYPE_UNLISTED = 2
SCRIPT_TYPE_LIBRARY = 3
SCRIPT_TYPES = [SCRIPT_TYPE_PUBLIC, SCRIPT_TYPE_UNLISTED, SCRIPT_TYPE_LIBRARY]

SUPPORTED_SCRIPT_LANGUAGES = ["js", "css"]

# Description given to deleted scripts that never had one
DELETED_SCRIPT_DESCRIPTION = "Deleted"

# Posting permission
CONFIRMATION_GRACE_PERIOD_SECONDS = 300  # 5 minutes

# Trusted reporter scoring
TRUSTED_REPORTS_MIN_RESOLVED = 3
TRUSTED_REPORTS_THRESHOLD = 0.75

# Ban-and-delete after the automated checker returns a ban verdict
SCRIPT_CHECKER_BAN_DELAY_SECONDS = 300  # 5 minutes

# Salt for hashes of banned-and-deleted canonical emails. Changing it
# invalidates every stored BannedEmailHash.
BANNED_EMAIL_SALT = (
    "95b68f92d7f373b07dfe101a4b3b46708ae161739b263016eefa3d01762879936507ff2a"
    "55442e9a47c681d895de4d905565e2645caff432a987b07457bc005b"
)
