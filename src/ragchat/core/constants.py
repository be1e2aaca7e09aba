"""Global chat defaults -- the last step of option resolution."""

DEFAULT_CHAT_SESSION_ID = "ragchat-session"
DEFAULT_CHAT_RATELIMIT_SESSION_ID = "ragchat-ratelimit-session"

DEFAULT_HISTORY_LENGTH = 5
DEFAULT_HISTORY_TTL = 86_400  # 1 day, seconds

DEFAULT_SIMILARITY_THRESHOLD = 0.5
DEFAULT_TOP_K = 5
DEFAULT_NAMESPACE = ""
DEFAULT_METADATA_KEY = "text"

# Message roles
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

# History line prefixes fed to the prompt
USER_MESSAGE_PREFIX = "USER MESSAGE: "
ASSISTANT_MESSAGE_PREFIX = "YOUR MESSAGE: "

RATELIMIT_ERROR_CODE = "ERR:USER_RATELIMITED"
