import os


JUDGE_BASE_URL = os.getenv('JUDGE_BASE_URL', 'http://localhost:8000').rstrip('/')
JUDGE_HTTP_TIMEOUT = float(os.getenv('JUDGE_HTTP_TIMEOUT', '10'))
JUDGE_USER_ID = os.getenv('JUDGE_USER_ID', '')

POLL_INTERVAL_SECONDS = float(os.getenv('JUDGE_POLL_INTERVAL', '1'))
# poll deadline = execution timeout + margin; the judge enforces its own limit first
POLL_MARGIN_SECONDS = float(os.getenv('JUDGE_POLL_MARGIN', '5'))
DEFAULT_EXECUTION_TIMEOUT = int(os.getenv('JUDGE_EXECUTION_TIMEOUT', '10'))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

if POLL_MARGIN_SECONDS <= 0:
    raise ValueError('JUDGE_POLL_MARGIN must be positive')

LANG_CONFIG = {
    'python': {
        'memory_short': '100m',
        'memory_long': '200m',
        'short_timeout': 10,
    },
}


def memory_limit_for(language: str, timeout_seconds: int) -> str:
    lang = language.lower()
    if lang not in LANG_CONFIG:
        raise ValueError('unsupported language')
    cfg = LANG_CONFIG[lang]
    if timeout_seconds == cfg['short_timeout']:
        return cfg['memory_short']
    return cfg['memory_long']
