import os

from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="auth/login",
)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

PDF_CONTENT_TYPE = "application/pdf"
DOCX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
DOC_CONTENT_TYPE = "application/msword"

# Declared media type -> format handled by the text extractor
CONTENT_TYPE_FORMATS = {
    PDF_CONTENT_TYPE: "pdf",
    DOCX_CONTENT_TYPE: "docx",
    DOC_CONTENT_TYPE: "doc",
    "text/plain": "text",
    "text/markdown": "text",
}

# Fallback when the media type is absent or unrecognized
EXTENSION_FORMATS = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".doc": "doc",
    ".txt": "text",
    ".md": "text",
}

ANALYSIS_INPUT_LIMIT = 12000
KEY_POINT_COUNT = 10
LLM_TEMPERATURE = 0.3

# Checked in order; the first key holding a list wins
HIGHLIGHT_KEYS = (
    "highlightedRiskClauses",
    "highlightedClauses",
    "highlighted_risks",
    "highlightedRisks",
    "highlights",
)
DEFAULT_SEVERITY = "medium"
