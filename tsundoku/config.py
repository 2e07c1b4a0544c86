"""
Centralized configuration

Values come from the process environment, optionally seeded from a .env file
in the working directory and one in the tsundoku config directory. Settings
are grouped into dataclasses and handed explicitly to each component.
"""
import os
import sys
import logging
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any
from dotenv import load_dotenv

from tsundoku.core.exceptions import ConfigurationError
from tsundoku.utils.file_utils import expand_path

_config_logger = logging.getLogger('config')

_debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'
if _debug_mode:
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("DEBUG_MODE enabled - verbose logging active")

# Placeholder written to fresh configurations; a key equal to it is "not configured"
API_KEY_PLACEHOLDER = "YOUR_API_KEY_HERE"

# Default values
DEFAULT_API_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TRANSLATION_CHUNK_SIZE = 4000
DEFAULT_TRANSLATION_RETRIES = 3
DEFAULT_TRANSLATION_DELAY = 1.0
DEFAULT_HISTORY_LENGTH = 5
DEFAULT_SCOUT_CHUNK_SIZE = 2500
DEFAULT_SCOUT_DELAY = 1.0
DEFAULT_SCOUT_JSON_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0
DEFAULT_SCRAPING_DELAY = 1.0
DEFAULT_REQUEST_TIMEOUT = 60
DEFAULT_OUTPUT_DIRECTORY = "."


def get_config_dir() -> Path:
    """Directory holding the .env file, the names/ folder and cookie files."""
    override = os.getenv('TSUNDOKU_CONFIG_DIR')
    if override:
        return expand_path(override)
    if sys.platform == "win32" and os.getenv('APPDATA'):
        return Path(os.environ['APPDATA']) / "tsundoku"
    xdg = os.getenv('XDG_CONFIG_HOME')
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "tsundoku"


def load_environment(config_dir: Optional[Path] = None) -> None:
    """Load .env files; existing environment variables always win."""
    cwd_env = Path.cwd() / '.env'
    config_dir = config_dir or get_config_dir()
    config_env = config_dir / '.env'

    for env_file in (cwd_env, config_env):
        if env_file.exists():
            _config_logger.debug(f"Loading environment from {env_file}")
            load_dotenv(env_file, override=False)
        else:
            _config_logger.debug(f"No .env at {env_file}")


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = _env_str(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(name, f"expected an integer, got '{value}'")


def _env_float(name: str, default: float) -> float:
    value = _env_str(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(name, f"expected a number, got '{value}'")


def _env_bool(name: str, default: bool = False) -> bool:
    value = _env_str(name)
    if value is None:
        return default
    return value.lower() in ('1', 'true', 'yes', 'on')


@dataclass
class ApiConfig:
    """Connection settings for an OpenAI-compatible endpoint"""
    key: str = API_KEY_PLACEHOLDER
    base_url: str = DEFAULT_API_BASE_URL
    model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.key) and self.key != API_KEY_PLACEHOLDER


@dataclass
class TranslationSettings:
    chunk_size_chars: int = DEFAULT_TRANSLATION_CHUNK_SIZE
    retries: int = DEFAULT_TRANSLATION_RETRIES
    delay_between_requests: float = DEFAULT_TRANSLATION_DELAY
    history_length: int = DEFAULT_HISTORY_LENGTH
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY


@dataclass
class NameScoutSettings:
    chunk_size_chars: int = DEFAULT_SCOUT_CHUNK_SIZE
    delay_between_requests: float = DEFAULT_SCOUT_DELAY
    json_retries: int = DEFAULT_SCOUT_JSON_RETRIES
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY


@dataclass
class ScrapingSettings:
    delay_between_requests: float = DEFAULT_SCRAPING_DELAY
    debug: bool = False


@dataclass
class PathsSettings:
    output_directory: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_DIRECTORY))
    names_directory: Optional[Path] = None
    editor_command: Optional[str] = None


@dataclass
class AppConfig:
    """Complete configuration for one run"""

    api: ApiConfig = field(default_factory=ApiConfig)
    scout_api: Optional[ApiConfig] = None
    translation: TranslationSettings = field(default_factory=TranslationSettings)
    name_scout: NameScoutSettings = field(default_factory=NameScoutSettings)
    scraping: ScrapingSettings = field(default_factory=ScrapingSettings)
    paths: PathsSettings = field(default_factory=PathsSettings)
    config_dir: Path = field(default_factory=get_config_dir)

    @classmethod
    def from_env(cls, config_dir: Optional[Path] = None, load_files: bool = True) -> 'AppConfig':
        """Create config from environment variables (and .env files)"""
        config_dir = config_dir or get_config_dir()
        if load_files:
            load_environment(config_dir)

        timeout = _env_float('REQUEST_TIMEOUT', DEFAULT_REQUEST_TIMEOUT)
        api = ApiConfig(
            key=_env_str('API_KEY', API_KEY_PLACEHOLDER),
            base_url=_env_str('API_BASE_URL', DEFAULT_API_BASE_URL),
            model=_env_str('API_MODEL', DEFAULT_MODEL),
            timeout=timeout,
        )

        scout_api = None
        if any(_env_str(name) for name in ('SCOUT_API_KEY', 'SCOUT_API_BASE_URL', 'SCOUT_API_MODEL')):
            scout_api = ApiConfig(
                key=_env_str('SCOUT_API_KEY', api.key),
                base_url=_env_str('SCOUT_API_BASE_URL', api.base_url),
                model=_env_str('SCOUT_API_MODEL', api.model),
                timeout=timeout,
            )

        names_dir = _env_str('NAMES_DIRECTORY')
        config = cls(
            api=api,
            scout_api=scout_api,
            translation=TranslationSettings(
                chunk_size_chars=_env_int('TRANSLATION_CHUNK_SIZE', DEFAULT_TRANSLATION_CHUNK_SIZE),
                retries=_env_int('TRANSLATION_RETRIES', DEFAULT_TRANSLATION_RETRIES),
                delay_between_requests=_env_float('TRANSLATION_DELAY', DEFAULT_TRANSLATION_DELAY),
                history_length=_env_int('TRANSLATION_HISTORY_LENGTH', DEFAULT_HISTORY_LENGTH),
                retry_base_delay=_env_float('RETRY_BASE_DELAY', DEFAULT_RETRY_BASE_DELAY),
            ),
            name_scout=NameScoutSettings(
                chunk_size_chars=_env_int('NAME_SCOUT_CHUNK_SIZE', DEFAULT_SCOUT_CHUNK_SIZE),
                delay_between_requests=_env_float('NAME_SCOUT_DELAY', DEFAULT_SCOUT_DELAY),
                json_retries=_env_int('NAME_SCOUT_JSON_RETRIES', DEFAULT_SCOUT_JSON_RETRIES),
                retry_base_delay=_env_float('RETRY_BASE_DELAY', DEFAULT_RETRY_BASE_DELAY),
            ),
            scraping=ScrapingSettings(
                delay_between_requests=_env_float('SCRAPING_DELAY', DEFAULT_SCRAPING_DELAY),
                debug=_env_bool('SCRAPING_DEBUG'),
            ),
            paths=PathsSettings(
                output_directory=expand_path(_env_str('OUTPUT_DIRECTORY', DEFAULT_OUTPUT_DIRECTORY)),
                names_directory=expand_path(names_dir) if names_dir else None,
                editor_command=_env_str('EDITOR_COMMAND'),
            ),
            config_dir=config_dir,
        )
        _config_logger.debug(f"Loaded configuration: model={api.model}, base_url={api.base_url}")
        return config

    @classmethod
    def from_cli_args(cls, args) -> 'AppConfig':
        """Create config from the environment, then apply CLI overrides"""
        config_dir = getattr(args, 'config_dir', None)
        config = cls.from_env(expand_path(config_dir) if config_dir else None)
        output_dir = getattr(args, 'output_dir', None)
        if output_dir:
            config.paths.output_directory = expand_path(output_dir)
        return config

    @property
    def names_dir(self) -> Path:
        return self.paths.names_directory or (self.config_dir / "names")

    @property
    def scout_api_config(self) -> ApiConfig:
        """API used by the name scout; falls back to the main API"""
        return self.scout_api or self.api

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: on the first invalid value found
        """
        if not self.api.key:
            raise ConfigurationError('API_KEY', "API key is empty")
        if self.scout_api is not None and not self.scout_api.key:
            raise ConfigurationError('SCOUT_API_KEY', "scout API key is empty")
        if self.translation.chunk_size_chars <= 0:
            raise ConfigurationError('TRANSLATION_CHUNK_SIZE', "chunk size must be greater than zero")
        if self.name_scout.chunk_size_chars <= 0:
            raise ConfigurationError('NAME_SCOUT_CHUNK_SIZE', "chunk size must be greater than zero")
        if self.translation.retries <= 0:
            raise ConfigurationError('TRANSLATION_RETRIES', "at least one attempt is required")
        if self.name_scout.json_retries <= 0:
            raise ConfigurationError('NAME_SCOUT_JSON_RETRIES', "at least one attempt is required")
        if self.translation.history_length < 0:
            raise ConfigurationError('TRANSLATION_HISTORY_LENGTH', "history length cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        """Settings as plain data, with API keys masked"""
        data = asdict(self)
        data['api']['key'] = '***' if self.api.key else ''
        if data['scout_api']:
            data['scout_api']['key'] = '***' if self.scout_api.key else ''
        return data
