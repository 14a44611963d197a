import os

from .config import db_config_from_env, env_bool, env_int

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config_from_env(default_password="123456")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Optimistic-lock retries for a day record changed by another process
SAVE_RETRIES = env_int("SAVE_RETRIES", 3)

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_bool("AUTO_INIT_DB", "1")
# Optional: also seed demo users on startup
AUTO_SEED_DB = env_bool("AUTO_SEED_DB", "0")
