from pathlib import Path
import os
import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'unsafe-dev-secret')
DEBUG = os.getenv('DJANGO_DEBUG', '1') == '1'
ALLOWED_HOSTS = [host for host in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if host]

INSTALLED_APPS = [
    'apps.numbers4.apps.Numbers4Config',
]

DATABASES = {
    'default': dj_database_url.config(
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=600,
    )
}

LANGUAGE_CODE = 'ja'
TIME_ZONE = 'Asia/Tokyo'
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Weekday dates with no drawing, on top of the Dec 31 - Jan 3 break.
DEFAULT_HOLIDAYS = [
    '2024-01-01', '2024-01-08', '2024-02-12', '2024-02-23', '2024-03-20',
    '2024-04-29', '2024-05-03', '2024-05-06', '2024-07-15', '2024-08-12',
    '2024-09-16', '2024-09-23', '2024-10-14', '2024-11-04', '2024-12-23',
    '2025-01-13', '2025-02-11', '2025-02-24', '2025-03-20', '2025-04-29',
    '2025-05-05', '2025-05-06', '2025-07-21', '2025-08-11', '2025-09-15',
    '2025-09-23', '2025-10-13', '2025-11-03', '2025-11-24',
    '2026-01-12', '2026-02-11', '2026-02-23', '2026-03-20', '2026-04-29',
    '2026-05-04', '2026-05-05', '2026-05-06', '2026-07-20', '2026-08-11',
    '2026-09-21', '2026-09-22', '2026-09-23', '2026-10-12', '2026-11-03',
    '2026-11-23',
]

NUMBERS4_CONFIG = {
    # Insertion order is priority order.
    'DATA_SOURCES': {
        'renban': {
            'url': 'https://numbers-renban.tokyo/numbers4/result_all',
            'enabled': True,
        },
        'mizuho_monthly': {
            'url': 'https://www.mizuhobank.co.jp/retail/takarakuji/numbers/backnumber/',
            'enabled': True,
        },
        'mizuho_backnumber': {
            'url': 'https://www.mizuhobank.co.jp/takarakuji/check/numbers/backnumber/',
            'enabled': True,
        },
        'renban_detail': {
            'url': 'https://numbers-renban.tokyo/numbers4/result/',
            'enabled': False,
        },
    },
    'RETENTION_LIMIT': int(os.getenv('NUMBERS4_RETENTION', '150')),
    'ANALYSIS_WINDOW': int(os.getenv('NUMBERS4_WINDOW', '100')),
    'PREDICTION_BATCH_SIZE': int(os.getenv('NUMBERS4_BATCH_SIZE', '10')),
    'RANDOM_BATCH_SIZE': int(os.getenv('NUMBERS4_RANDOM_BATCH_SIZE', '12')),
    'REQUEST_TIMEOUT': float(os.getenv('NUMBERS4_REQUEST_TIMEOUT', '15')),
    'REQUEST_DELAY': float(os.getenv('NUMBERS4_REQUEST_DELAY', '1.0')),
    'MAX_PAGES': int(os.getenv('NUMBERS4_MAX_PAGES', '3')),
    'BACKTEST_DRAWS': int(os.getenv('NUMBERS4_BACKTEST_DRAWS', '10')),
    'HOLIDAYS': DEFAULT_HOLIDAYS + [day for day in os.getenv('NUMBERS4_HOLIDAYS', '').split(',') if day],
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
        },
    },
    'loggers': {
        'numbers4': {
            'handlers': ['console'],
            'level': os.getenv('NUMBERS4_LOG_LEVEL', 'INFO'),
        },
    },
}
