import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# ---- Model providers ----
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "cohere").lower()
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "120"))

COHERE_BASE_URL = os.getenv("COHERE_BASE_URL", "https://api.cohere.ai")
COHERE_MODEL = os.getenv("COHERE_MODEL", "command-r-plus")

OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")

# ---- Service ----
DATABASE_URL = os.getenv("CLOUDMAP_DATABASE_URL", "sqlite:///./cloudmap.db")
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if o.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ENABLE_STREAMING = env_flag("ENABLE_STREAMING", True)
DEBUG_JARVIS = env_flag("DEBUG_JARVIS")
DEBUG_INTENT_DETECTION = env_flag("DEBUG_INTENT_DETECTION")
DEBUG_PROMPTS = env_flag("DEBUG_PROMPTS")


def cohere_api_key() -> str:
    return os.getenv("COHERE_API_KEY", "")


def openai_api_key() -> str:
    return os.getenv("OPENAI_API_KEY", "")


def is_cohere_configured() -> bool:
    return bool(cohere_api_key())


def is_openai_configured() -> bool:
    return bool(openai_api_key())
