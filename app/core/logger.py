# core/logger.py
import logging

from app.core.config import settings

logger = logging.getLogger("feedbackboard")
logger.setLevel(settings.LOG_LEVEL.upper())

# Module may be imported again under uvicorn --reload
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        logging.Formatter("[%(asctime)s] [%(levelname)s] [%(module)s] %(message)s")
    )
    logger.addHandler(console_handler)
