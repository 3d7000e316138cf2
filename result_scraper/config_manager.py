"""
Configuration management for the result scraper.
Handles loading, merging and validation of YAML configuration files.
"""

import os
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional, Tuple
from .exceptions import ConfigurationError, ValidationError


DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")

SELECTOR_FIELDS = (
    'exam_name', 'semester', 'exam_date', 'student_name', 'college_name',
    'course_name', 'sgpa', 'publish_date', 'theory_rows', 'practical_rows',
    'semester_grade_cells',
)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff applied to every outbound request."""
    max_retries: int = 3
    initial_delay_ms: int = 1000
    backoff_factor: float = 2.0


@dataclass(frozen=True)
class ScraperSettings:
    """Immutable process-wide settings injected into every component."""
    university: str
    base_urls: Dict[int, str]
    selectors: Dict[str, str]
    default_semester: str = "I"
    not_found_marker: str = "No Record Found !!!"
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    timeout: float = 30
    user_agent: Optional[str] = None
    batch_size: int = 5
    regular_range: Tuple[int, int] = (1, 60)
    lateral_range: Tuple[int, int] = (901, 925)
    min_registration_length: int = 11
    separator: str = "*" * 36
    num_threads: int = 8
    peer_url_template: Optional[str] = None
    log_level: str = "INFO"
    log_dir: str = "data/logs"

    def base_url_for(self, year) -> str:
        """Resolve the portal page for an admission year or reject the year."""
        try:
            key = int(year)
        except (TypeError, ValueError):
            raise ValidationError(f"No results available for the year {year}")
        if key not in self.base_urls:
            raise ValidationError(f"No results available for the year {year}")
        return self.base_urls[key]


class ConfigManager:
    """Manages loading and validation of configuration files."""

    REQUIRED_SECTIONS = ['portal', 'retry', 'http', 'batch', 'aggregation', 'selectors', 'logging']

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.getenv("RESULT_SCRAPER_CONFIG")
        self.config = {}
        self._load_configurations()

    def _load_configurations(self):
        """Load the bundled defaults, merge the user file over them and validate."""
        self.config = self._load_yaml_file(DEFAULT_CONFIG_PATH)
        if self.config_path:
            overrides = self._load_yaml_file(self.config_path)
            for section, values in overrides.items():
                if isinstance(values, dict) and isinstance(self.config.get(section), dict):
                    self.config[section].update(values)
                else:
                    self.config[section] = values

        self._validate_config()

    def _load_yaml_file(self, file_path) -> Dict[str, Any]:
        """Load and parse a YAML file."""
        if not os.path.exists(file_path):
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        try:
            with open(file_path, 'r', encoding='utf-8') as file:
                return yaml.safe_load(file) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {file_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error reading {file_path}: {e}")

    def _validate_config(self):
        """Validate the configuration schema."""
        for section in self.REQUIRED_SECTIONS:
            if section not in self.config:
                raise ConfigurationError(f"Missing required section in config: {section}")

        portal = self.config['portal']
        for key in ['university', 'base_urls', 'not_found_marker']:
            if key not in portal:
                raise ConfigurationError(f"Missing portal setting: {key}")
        if not portal['base_urls']:
            raise ConfigurationError("No base_urls defined in portal section")
        for year in portal['base_urls']:
            if not str(year).isdigit():
                raise ConfigurationError(f"Invalid admission year in base_urls: {year}")

        retry = self.config['retry']
        for key in ['max_retries', 'initial_delay_ms', 'backoff_factor']:
            if key not in retry:
                raise ConfigurationError(f"Missing retry setting: {key}")
        if int(retry['max_retries']) < 1:
            raise ConfigurationError("retry.max_retries must be at least 1")
        if float(retry['backoff_factor']) < 1:
            raise ConfigurationError("retry.backoff_factor must be at least 1")

        batch = self.config['batch']
        for key in ['size', 'regular_range', 'lateral_range']:
            if key not in batch:
                raise ConfigurationError(f"Missing batch setting: {key}")
        if int(batch['size']) < 1:
            raise ConfigurationError("batch.size must be at least 1")
        for key in ['regular_range', 'lateral_range']:
            bounds = batch[key]
            if len(bounds) != 2 or int(bounds[0]) > int(bounds[1]):
                raise ConfigurationError(f"Invalid batch range {key}: {bounds}")

        unknown = set(self.config['selectors']) - set(SELECTOR_FIELDS)
        if unknown:
            raise ConfigurationError(f"Unknown selector fields: {', '.join(sorted(unknown))}")
        missing = set(SELECTOR_FIELDS) - set(self.config['selectors'])
        if missing:
            raise ConfigurationError(f"Missing selector fields: {', '.join(sorted(missing))}")

    def get_portal_config(self) -> Dict[str, Any]:
        """Get portal-related configuration."""
        return self.config['portal'].copy()

    def get_retry_config(self) -> Dict[str, Any]:
        """Get retry/backoff configuration."""
        return self.config['retry'].copy()

    def get_batch_config(self) -> Dict[str, Any]:
        """Get batch planning configuration."""
        return self.config['batch'].copy()

    def get_selectors(self) -> Dict[str, str]:
        """Get the selector table mapping result fields to markup locations."""
        return self.config['selectors'].copy()

    def get_settings(self) -> ScraperSettings:
        """Build the immutable settings object handed to every component."""
        portal = self.get_portal_config()
        retry = self.get_retry_config()
        http = self.config['http']
        batch = self.get_batch_config()
        aggregation = self.config['aggregation']
        logging_config = self.config['logging']

        return ScraperSettings(
            university=portal['university'],
            base_urls={int(year): url for year, url in portal['base_urls'].items()},
            selectors=self.get_selectors(),
            default_semester=str(portal.get('default_semester', 'I')),
            not_found_marker=portal['not_found_marker'],
            retry=RetryPolicy(
                max_retries=int(retry['max_retries']),
                initial_delay_ms=int(retry['initial_delay_ms']),
                backoff_factor=float(retry['backoff_factor']),
            ),
            timeout=float(http.get('timeout', 30)),
            user_agent=http.get('user_agent'),
            batch_size=int(batch['size']),
            regular_range=tuple(int(n) for n in batch['regular_range']),
            lateral_range=tuple(int(n) for n in batch['lateral_range']),
            min_registration_length=int(batch.get('min_registration_length', 11)),
            separator=batch.get('separator', "*" * 36),
            num_threads=int(aggregation.get('num_threads', 8)),
            peer_url_template=aggregation.get('peer_url_template'),
            log_level=logging_config.get('level', 'INFO'),
            log_dir=logging_config.get('log_dir', 'data/logs'),
        )
