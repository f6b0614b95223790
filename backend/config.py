import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of origins allowed to open the socket
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080,http://127.0.0.1:8080',
        ).split(',') if o.strip()
    ]
    # Reset protocol timings (milliseconds)
    RESET_SETTLE_MS = int(os.environ.get('RESET_SETTLE_MS', '500'))
    RESET_COOLDOWN_MS = int(os.environ.get('RESET_COOLDOWN_MS', '2000'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    PORT = int(os.environ.get('PORT', '8080'))
