import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Race finish line (progress units)
    PROGRESS_TO_WIN = float(os.environ.get('PROGRESS_TO_WIN', '100'))
    # Race progress simulation cadence (ms)
    PROGRESS_TICK_MS = int(os.environ.get('PROGRESS_TICK_MS', '100'))
    # Survival round clock check / time broadcast cadence (sec)
    TIME_TICK_SEC = float(os.environ.get('TIME_TICK_SEC', '1'))
    # Pre-round countdown: starts at COUNTDOWN_FROM, one step per COUNTDOWN_STEP_SEC
    COUNTDOWN_FROM = int(os.environ.get('COUNTDOWN_FROM', '3'))
    COUNTDOWN_STEP_SEC = float(os.environ.get('COUNTDOWN_STEP_SEC', '1'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '15'))
    # Minimum alive players for another countdown
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    PORT = int(os.environ.get('PORT', '3000'))
