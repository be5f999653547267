import os

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://postgres:postgres@db:5432/campus_match")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

FEED_DEFAULT_PAGE_SIZE = int(os.getenv("FEED_DEFAULT_PAGE_SIZE", "20"))
FEED_MAX_PAGE_SIZE = int(os.getenv("FEED_MAX_PAGE_SIZE", "100"))

AGE_FLOOR = 18
AGE_CEILING = 100

SWIPE_HISTORY_DEFAULT_LIMIT = int(os.getenv("SWIPE_HISTORY_DEFAULT_LIMIT", "50"))
SWIPE_HISTORY_MAX_LIMIT = 100
