DEFAULT_LIMIT = 10
DEFAULT_THRESHOLD = 0.7
DEFAULT_TEXT_THRESHOLD = 0.3  # keyword scores run lower than cosine scores

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200

MAX_CONTEXT_CHARS = 10_000
TRUNCATION_MARKER = " ...[truncated]"
CONTEXT_DELIMITER = "\n---\n"
STRONG_MATCH_CUTOFF = 0.6

DEFAULT_LLM_MODEL = "gpt-4o-mini"
DEFAULT_LLM_TEMPERATURE = 0.7
DEFAULT_LLM_MAX_TOKENS = 1500
DEFAULT_LLM_TIMEOUT = 60

RECORD_SCHEMA_VERSION = 1

DOCUMENTS_COLLECTION = "rag_documents"
CHUNKS_COLLECTION = "rag_chunks"
USER_STATS_COLLECTION = "rag_user_stats"
USER_STATS_RECORD_ID = "rag_stats"

DEFAULT_CATEGORY = "general"
UNKNOWN_FILENAME = "Unknown"

MIME_TYPE_TO_FILE_TYPE = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
}

# Keyword scoring
EXACT_PHRASE_BONUS = 10
WORD_MATCH_POINTS = 2
WORD_MAX_POINTS = 3
MIN_QUERY_WORD_LENGTH = 3
