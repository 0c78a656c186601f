"""Configuration management for the XRL chat backend."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Supabase (service role key bypasses RLS, backend only)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
SUPABASE_BUCKET = os.getenv("SUPABASE_BUCKET", "documents")

# n8n webhook
N8N_WEBHOOK_URL = os.getenv("N8N_WEBHOOK_URL", "")
N8N_CALLBACK_SECRET = os.getenv("N8N_CALLBACK_SECRET", "")
N8N_TIMEOUT = float(os.getenv("N8N_TIMEOUT", "60"))

# Server Configuration
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# CORS Configuration
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")

# Chunking Configuration
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1200"))  # characters
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "200"))  # characters
CHUNK_INSERT_BATCH_SIZE = int(os.getenv("CHUNK_INSERT_BATCH_SIZE", "100"))

# Retrieval Configuration
RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", "12"))
MIN_KEYWORD_LENGTH = 4

# Upload Configuration
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
