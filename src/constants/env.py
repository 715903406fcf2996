##
## WARNING: Do not make any changes to this file
## This file is used to set the environment variables
## The variables are used in the development and production environment
##
import os

from dotenv import load_dotenv

load_dotenv()


# "memory" runs background tasks inside the API process,
# "redis" hands them to a separate taskiq worker
TASK_BROKER = os.getenv("TASK_BROKER", "memory")

VALKEY_WORKER_URL = os.getenv("VALKEY_WORKER_URL", "redis://valkey-worker:6379")

# Database configuration - construct from individual env vars if available (AWS)
# Otherwise fall back to DATABASE_URL or default (local development)
DB_HOST = os.getenv("DB_HOST")
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_NAME = os.getenv("DB_NAME")
DB_PORT = int(os.getenv("DB_PORT", 5432))

if DB_HOST and DB_USER and DB_PASSWORD and DB_NAME:
    DATABASE_URL = (
        f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    )
else:
    DATABASE_URL = os.environ.get(
        "DATABASE_URL",
        "postgresql+asyncpg://postgres:postgres@db:5432/legal_documents",
    )

SECRET_KEY = os.environ.get(
    "SECRET_KEY", "09d25e094faa6ca2556c818166b7a9563b93f7099f6f0f4caa6cf63b88e8d3e7"
)

DEVELOPMENT = os.environ.get("DEVELOPMENT", "").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
JSON_LOGS = os.getenv("JSON_LOGS", "").lower() in ("1", "true", "yes")

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",")
    if origin.strip()
]

R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID", "r2_access_key_id")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY", "r2_secret_access_key")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "r2_bucket_name")
R2_ENDPOINT_URL = os.getenv("R2_ENDPOINT_URL", "r2_endpoint_url")
R2_REGION_NAME = os.getenv("R2_REGION_NAME", "auto")

LLM_API_KEY = os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", ""))
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4-turbo-preview")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", 120))
