import os


def _origins(raw):
    return [o.strip() for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = _origins(os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
    ))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Room sizing
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
    # Game selection; AUTO_START_CYCLE=0 makes the admin send startQuestions separately
    DEFAULT_GAME_TYPE = os.environ.get('DEFAULT_GAME_TYPE', 'Toohak')
    AUTO_START_CYCLE = os.environ.get('AUTO_START_CYCLE', '1') == '1'
    # Toohak round clock (milliseconds)
    TOOHAK_QUESTION_COUNT = int(os.environ.get('TOOHAK_QUESTION_COUNT', '5'))
    TOOHAK_ROUND_TIME_MS = int(os.environ.get('TOOHAK_ROUND_TIME_MS', '10000'))
    TOOHAK_SETTLE_DELAY_MS = int(os.environ.get('TOOHAK_SETTLE_DELAY_MS', '3000'))
    # Trivia
    TRIVIA_QUESTIONS_PER_PLAYER = int(os.environ.get('TRIVIA_QUESTIONS_PER_PLAYER', '5'))
    # What happens to a running game when a player leaves: forfeit | conclude_below_minimum
    DEPARTURE_POLICY = os.environ.get('DEPARTURE_POLICY', 'forfeit')
    CHAT_MAX_LENGTH = int(os.environ.get('CHAT_MAX_LENGTH', '500'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
