import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

MAPSCRIPT_FONT_NAME = os.getenv("MAPSCRIPT_FONT_NAME", "Arial")
MAX_DOCUMENT_CHARS = int(os.getenv("MAPSCRIPT_MAX_DOCUMENT_CHARS", "200000"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("MAPSCRIPT_CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("MAPSCRIPT_LOG_LEVEL", "INFO").upper()
