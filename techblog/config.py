# techblog/config.py
import os
from dotenv import load_dotenv
load_dotenv()

DB_DSN = os.getenv("DATABASE_URL")
DB_CREATE_TABLES = os.getenv("DB_CREATE_TABLES", "true").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ROOT_PATH = os.getenv("ROOT_PATH", "")

ARTICLES_PER_PAGE = int(os.getenv("ARTICLES_PER_PAGE", "12"))
CATEGORIES_PER_PAGE = int(os.getenv("CATEGORIES_PER_PAGE", "10"))
# "retain" keeps published_at when an article goes back to draft, "clear" resets it
UNPUBLISH_POLICY = os.getenv("UNPUBLISH_POLICY", "retain").lower()
