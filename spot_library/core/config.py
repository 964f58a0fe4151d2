"""
Configuration management for spot-library.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - Spotify API credentials (client_id, client_secret) and OAuth settings
    - Output directory and library file name
    - Paging and worker settings for the aggregation run

Configuration File Location:
    The config.yaml file is looked up in the current working directory
    unless an explicit path is given (spot-library --config PATH).

Example config.yaml:
    spotify:
      client_id: "your_client_id_here"
      client_secret: "your_client_secret_here"
      redirect_uri: "http://127.0.0.1:8888/callback"
      cache_path: ".spotify_token_cache"

    output:
      directory: "~/Music/SpotLibrary"
      library_file: "library.json"

    fetch:
      playlist_page_size: 50
      track_page_size: 100
      workers: 1
      timeout: 10
      retries: 3
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from spot_library.core.exceptions import ConfigError


# Default configuration file name (in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
DEFAULT_CACHE_PATH = ".spotify_token_cache"
DEFAULT_LIBRARY_FILENAME = "library.json"

# Spotify Web API page size limits
MAX_PLAYLIST_PAGE_SIZE = 50
MAX_TRACK_PAGE_SIZE = 100


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify API credentials and OAuth configuration.

    These credentials are obtained from the Spotify Developer Dashboard:
    https://developer.spotify.com/dashboard

    Attributes:
        client_id: The Spotify application client ID.
        client_secret: The Spotify application client secret.
        redirect_uri: OAuth redirect URI registered for the application.
        cache_path: File where spotipy caches the OAuth token.
    """
    client_id: str
    client_secret: str
    redirect_uri: str = DEFAULT_REDIRECT_URI
    cache_path: Path = Path(DEFAULT_CACHE_PATH)


@dataclass(frozen=True)
class OutputConfig:
    """
    Output configuration.

    Attributes:
        directory: Absolute path where the library file and logs are written.
                   Path expansion is performed (~ is expanded to home directory).
        library_file: Absolute path of the JSON library file.
                      Defaults to {directory}/library.json.
    """
    directory: Path
    library_file: Path


@dataclass(frozen=True)
class FetchConfig:
    """
    Paging and scheduling configuration for an aggregation run.

    Attributes:
        playlist_page_size: Page-size hint for the playlist listing (1-50).
        track_page_size: Page-size hint for playlist items (1-100).
        workers: Number of playlists fetched in parallel. 1 means sequential.
        timeout: Request timeout in seconds, handed to spotipy.
        retries: Transport-level retries, handed to spotipy.
                 The pager itself never retries.
    """
    playlist_page_size: int = MAX_PLAYLIST_PAGE_SIZE
    track_page_size: int = MAX_TRACK_PAGE_SIZE
    workers: int = 1
    timeout: float = 10
    retries: int = 3


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Library file: {config.output.library_file}")
        print(f"Using {config.fetch.workers} workers")
    """
    spotify: SpotifyConfig
    output: OutputConfig
    fetch: FetchConfig


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is not found, has invalid YAML syntax,
                     is missing required fields, or contains invalid values.

    Behavior:
        1. Locate config file (explicit path or CWD/config.yaml)
        2. Read and parse YAML content
        3. Validate structure (required sections exist)
        4. Parse spotify, output and fetch sections with defaults
        5. Return frozen Config object
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    _validate_config(raw_config)

    return Config(
        spotify=_parse_spotify_config(raw_config["spotify"]),
        output=_parse_output_config(raw_config["output"]),
        fetch=_parse_fetch_config(raw_config.get("fetch"))
    )


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Check the configuration has all required sections.

    Raises:
        ConfigError: If a required section is missing or not a mapping.
    """
    for section in ("spotify", "output"):
        if section not in raw_config:
            raise ConfigError(
                f"Missing required section: '{section}'",
                details={"missing_section": section}
            )

        if not isinstance(raw_config[section], dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    fetch_section = raw_config.get("fetch")
    if fetch_section is not None and not isinstance(fetch_section, dict):
        raise ConfigError(
            "Section 'fetch' must be a dictionary",
            details={"section": "fetch"}
        )


def _require_string(section: dict[str, Any], key: str, field_name: str) -> str:
    value = section.get(key, "")
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{field_name}' must be a non-empty string",
            details={"field": field_name}
        )
    return value.strip()


def _parse_spotify_config(spotify_section: dict[str, Any]) -> SpotifyConfig:
    """
    Parse and validate the Spotify configuration section.

    Raises:
        ConfigError: If client_id or client_secret is missing or empty,
                     or an optional field has the wrong type.
    """
    client_id = _require_string(spotify_section, "client_id", "spotify.client_id")
    client_secret = _require_string(spotify_section, "client_secret", "spotify.client_secret")

    redirect_uri = DEFAULT_REDIRECT_URI
    if spotify_section.get("redirect_uri") is not None:
        redirect_uri = _require_string(spotify_section, "redirect_uri", "spotify.redirect_uri")

    cache_path = Path(DEFAULT_CACHE_PATH)
    if spotify_section.get("cache_path") is not None:
        cache_path = Path(
            _require_string(spotify_section, "cache_path", "spotify.cache_path")
        ).expanduser()

    return SpotifyConfig(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
        cache_path=cache_path
    )


def _parse_output_config(output_section: dict[str, Any]) -> OutputConfig:
    """
    Parse and validate the output configuration section.

    Expands ~ to home directory and converts to absolute Path.
    Does NOT create the directory (that happens when the library is saved).

    Raises:
        ConfigError: If directory is missing or empty.
    """
    directory = _require_string(output_section, "directory", "output.directory")
    path = Path(directory).expanduser().resolve()

    library_file = path / DEFAULT_LIBRARY_FILENAME
    if output_section.get("library_file") is not None:
        raw_file = Path(
            _require_string(output_section, "library_file", "output.library_file")
        ).expanduser()
        # Relative names live inside the output directory
        library_file = raw_file if raw_file.is_absolute() else path / raw_file

    return OutputConfig(directory=path, library_file=library_file)


def _parse_int(
    section: dict[str, Any],
    key: str,
    default: int,
    minimum: int,
    maximum: int | None = None
) -> int:
    raw = section.get(key)
    if raw is None:
        return default

    # bool is a subclass of int; "workers: yes" is not a number
    if not isinstance(raw, int) or isinstance(raw, bool) or raw < minimum \
            or (maximum is not None and raw > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise ConfigError(
            f"'fetch.{key}' must be an integer {bounds}",
            details={"field": f"fetch.{key}", "value": raw}
        )
    return raw


def _parse_fetch_config(fetch_section: dict[str, Any] | None) -> FetchConfig:
    """
    Parse and validate the fetch configuration section.

    Applies defaults if section is missing or fields are not specified.

    Raises:
        ConfigError: If a page size is outside the API limits, workers is
                     not positive, timeout is not a positive number, or
                     retries is negative.
    """
    if fetch_section is None:
        return FetchConfig()

    timeout = fetch_section.get("timeout", FetchConfig.timeout)
    if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
        raise ConfigError(
            "'fetch.timeout' must be a positive number of seconds",
            details={"field": "fetch.timeout", "value": timeout}
        )

    return FetchConfig(
        playlist_page_size=_parse_int(
            fetch_section, "playlist_page_size", MAX_PLAYLIST_PAGE_SIZE, 1, MAX_PLAYLIST_PAGE_SIZE
        ),
        track_page_size=_parse_int(
            fetch_section, "track_page_size", MAX_TRACK_PAGE_SIZE, 1, MAX_TRACK_PAGE_SIZE
        ),
        workers=_parse_int(fetch_section, "workers", 1, 1),
        timeout=timeout,
        retries=_parse_int(fetch_section, "retries", 3, 0),
    )
