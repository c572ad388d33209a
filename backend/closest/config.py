import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Rooms
    ROOM_TTL_SEC = int(os.environ.get("ROOM_TTL_SEC", "120"))
    NAME_MAX_LEN = int(os.environ.get("NAME_MAX_LEN", "24"))

    # Game
    PROMPT_MAX_LEN = int(os.environ.get("PROMPT_MAX_LEN", "300"))
    PROMPT_RETRY_ON_FAILURE = os.environ.get("PROMPT_RETRY_ON_FAILURE", "1") == "1"

    # Answer oracle: "mock" or "openai" (any OpenAI-compatible endpoint)
    ORACLE_BACKEND = os.environ.get("ORACLE_BACKEND", "mock")
    ORACLE_API_URL = os.environ.get("ORACLE_API_URL", "https://api.openai.com/v1")
    ORACLE_API_KEY = os.environ.get("ORACLE_API_KEY", "")
    ORACLE_MODEL = os.environ.get("ORACLE_MODEL", "gpt-4o-mini")
    ORACLE_TIMEOUT_SEC = float(os.environ.get("ORACLE_TIMEOUT_SEC", "20"))
