#!/usr/bin/env python3

import os
from pathlib import Path
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent  # personal-wiki/
TEMPLATE_DIR = ROOT_DIR / "templates"
STATIC_DIR = ROOT_DIR / "static"

load_dotenv(ROOT_DIR / ".env")

# PostgreSQL
PSQL_HOST = os.getenv("PSQL_HOST", "localhost")
PSQL_PORT = int(os.getenv("PSQL_PORT", 5432))
PSQL_USER = os.getenv("PSQL_USER", "")
PSQL_PASS = os.getenv("PSQL_PASS", "")
PSQL_DATABASE = os.getenv("PSQL_DATABASE", "wikis")
WIKI_SCHEMA = os.getenv("WIKI_SCHEMA", "public")
WIKI_TABLE = os.getenv("WIKI_TABLE", "wikis")

# "psql" or "memory"
WIKI_STORAGE = os.getenv("WIKI_STORAGE", "psql")

# Accepts any werkzeug method string, e.g. "scrypt:32768:8:1" or "pbkdf2:sha256:600000"
PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

# Web
CORS_ORIGIN = os.getenv("CORS_ORIGIN", "https://personalwiki.com.de")
RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
WRITE_RATE_LIMIT = os.getenv("WRITE_RATE_LIMIT", "60 per second")
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = os.getenv("LOG_FILE", "wiki.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", 7))
WIKI_HOST = os.getenv("WIKI_HOST", "0.0.0.0")
WIKI_PORT = int(os.getenv("WIKI_PORT", 3000))
WIKI_THREADS = int(os.getenv("WIKI_THREADS", 4))
