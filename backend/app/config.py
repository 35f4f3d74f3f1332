import os
from dotenv import load_dotenv
load_dotenv()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

MODEL_PATH = os.getenv("MODEL_PATH", "models/model.h5")
MODEL_LOAD_RETRIES = int(os.getenv("MODEL_LOAD_RETRIES", 2))
MODEL_LOAD_RETRY_DELAY = float(os.getenv("MODEL_LOAD_RETRY_DELAY", 5))

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
UPLOAD_FIELD = "image"
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", 1000000))

MAX_IMAGE_PIXELS = int(os.getenv("MAX_IMAGE_PIXELS", 40000000))

PREDICT_TIMEOUT = float(os.getenv("PREDICT_TIMEOUT", 30))
MESSAGE_LOCALE = os.getenv("MESSAGE_LOCALE", "en").lower()
