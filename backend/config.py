import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Round timers (seconds)
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '30'))
    START_DELAY_SEC = int(os.environ.get('START_DELAY_SEC', '2'))
    NEXT_ROUND_DELAY_SEC = int(os.environ.get('NEXT_ROUND_DELAY_SEC', '5'))
    # Final results hold time before the session is wiped
    GAME_END_DELAY_SEC = int(os.environ.get('GAME_END_DELAY_SEC', '3'))
    # Comma separated list of origins allowed to open a socket
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000',
        ).split(',')
        if origin.strip()
    ]
