import os
from dotenv import load_dotenv
load_dotenv()


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f'{name} environment variable must be an integer.')


class Config:
    DEFAULT_MONDAY_API_URL = 'https://api.monday.com/v2'
    DEFAULT_MONDAY_API_VERSION = '2024-01'
    DEFAULT_TIMEOUT_MS = 30000
    DEFAULT_RETRIES = 3
    DEFAULT_RETRY_DELAY_MS = 1000

    @staticmethod
    def get_monday_settings():
        """
        Returns the Monday.com client settings, read from the environment at call time.
        """
        return {
            'api_token': os.getenv('MONDAY_API_TOKEN'),
            'api_url': os.getenv('MONDAY_API_URL') or Config.DEFAULT_MONDAY_API_URL,
            'api_version': os.getenv('MONDAY_API_VERSION') or Config.DEFAULT_MONDAY_API_VERSION,
            'timeout_ms': _int_from_env('MONDAY_TIMEOUT_MS', Config.DEFAULT_TIMEOUT_MS),
            'retries': _int_from_env('MONDAY_RETRIES', Config.DEFAULT_RETRIES),
            'retry_delay_ms': _int_from_env('MONDAY_RETRY_DELAY_MS', Config.DEFAULT_RETRY_DELAY_MS),
        }

