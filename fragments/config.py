"""Configuration settings for the Fragments server."""

import os
from common.constants import DEFAULT_PORT, MAX_BODY_BYTES


FRAGMENTS_HOST = os.environ.get("FRAGMENTS_HOST", "0.0.0.0")

FRAGMENTS_PORT = int(os.environ.get("PORT", str(DEFAULT_PORT)))

API_URL = os.environ.get("API_URL")

HASH_SECRET = os.environ.get("HASH_SECRET", "default-secret")

HTPASSWD_FILE = os.environ.get("HTPASSWD_FILE")

STORAGE_BACKEND = os.environ.get("FRAGMENTS_STORAGE_BACKEND", "memory").lower()

DATABASE_PATH = os.environ.get("FRAGMENTS_DATABASE_PATH", "/app/data/fragments.db")

DATA_DIR = os.environ.get("FRAGMENTS_DATA_DIR", "/app/data/payloads")

MAX_FRAGMENT_BYTES = int(os.environ.get("FRAGMENTS_MAX_BODY_BYTES", str(MAX_BODY_BYTES)))

AUTH_REALM = "fragments"

AWS_COGNITO_POOL_ID = os.environ.get("AWS_COGNITO_POOL_ID")

AWS_COGNITO_CLIENT_ID = os.environ.get("AWS_COGNITO_CLIENT_ID")

JWKS_CACHE_SECONDS = int(os.environ.get("FRAGMENTS_JWKS_CACHE_SECONDS", "3600"))
