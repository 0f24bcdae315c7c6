"""Application-wide constants.

This module centralizes the Messenger platform limits, Send API details
and canned copy shared by several modules.
"""

# =============================================================================
# Facebook API
# =============================================================================

# Facebook Graph API version
FACEBOOK_GRAPH_API_VERSION = "v18.0"

# Graph API host
FACEBOOK_GRAPH_API_BASE_URL = "https://graph.facebook.com"

# Timeout for Facebook Graph API calls (seconds)
FACEBOOK_API_TIMEOUT_SECONDS = 10.0

# The only webhook object type this bot subscribes to
PAGE_OBJECT_TYPE = "page"

# Header carrying the webhook body signature (method=hexdigest)
SIGNATURE_HEADER = "x-hub-signature"

# =============================================================================
# Send API schema limits
# =============================================================================

# Button template and generic element button limit
MAX_TEMPLATE_BUTTONS = 3

# Generic (carousel) template element limit
MAX_GENERIC_ELEMENTS = 10

# Quick reply options per message
MAX_QUICK_REPLIES = 13

# =============================================================================
# Outbound message defaults
# =============================================================================

# Metadata attached to text and quick reply messages; echoed back on is_echo events
DEFAULT_MESSAGE_METADATA = "DEVELOPER_DEFINED_METADATA"

# Path under SERVER_URL where image/audio/video assets are published
ASSETS_PATH = "/assets"

# =============================================================================
# Shutdown
# =============================================================================

# Graceful shutdown timeout (seconds) - wait this long for deliveries to complete
GRACEFUL_SHUTDOWN_TIMEOUT_SECONDS = 30.0

# =============================================================================
# Account linking
# =============================================================================

# Number of random bytes in a generated authorization code
AUTHORIZATION_CODE_BYTES = 8
