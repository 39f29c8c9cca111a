"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Identifier lengths (user ids come from the auth provider as text)
MAX_ID_LENGTH = 64

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_LICENSE_NUMBER_LENGTH = 100
MAX_PHONE_LENGTH = 50
MAX_ROLE_NAME_LENGTH = 50
MAX_USER_TYPE_LENGTH = 50

# Tenant context extraction defaults
DEFAULT_TENANT_PATH_MARKERS = ("firm", "firms", "law-firms")
DEFAULT_TENANT_QUERY_PARAMS = ("firmId", "firm_id")
DEFAULT_TENANT_HEADER = "X-Firm-Id"

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 32

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"
