"""Test configuration loading"""

import pytest

from spot_library.core.config import FetchConfig, load_config
from spot_library.core.exceptions import ConfigError


def write_config(temp_dir, text):
    path = temp_dir / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


BASE = (
    "spotify:\n"
    "  client_id: abc\n"
    "  client_secret: def\n"
    "output:\n"
    "  directory: {directory}\n"
)


class TestLoadConfig:
    """Test config.yaml parsing"""

    def test_minimal_config_defaults(self, temp_dir):
        """Test defaults for every optional field"""
        config = load_config(write_config(temp_dir, BASE.format(directory=temp_dir)))

        assert config.spotify.client_id == "abc"
        assert config.spotify.redirect_uri == "http://127.0.0.1:8888/callback"
        assert config.output.directory == temp_dir.resolve()
        assert config.output.library_file == temp_dir.resolve() / "library.json"
        assert config.fetch == FetchConfig()
        assert config.fetch.playlist_page_size == 50
        assert config.fetch.track_page_size == 100
        assert config.fetch.workers == 1

    def test_fetch_section(self, temp_dir):
        """Test explicit fetch settings"""
        text = BASE.format(directory=temp_dir) + (
            "  library_file: mine.json\n"
            "fetch:\n"
            "  playlist_page_size: 20\n"
            "  track_page_size: 100\n"
            "  workers: 4\n"
            "  timeout: 2.5\n"
            "  retries: 0\n"
        )
        config = load_config(write_config(temp_dir, text))

        assert config.output.library_file == temp_dir.resolve() / "mine.json"
        assert config.fetch.playlist_page_size == 20
        assert config.fetch.workers == 4
        assert config.fetch.timeout == 2.5
        assert config.fetch.retries == 0

    def test_missing_file(self, temp_dir):
        """Test a missing config.yaml"""
        with pytest.raises(ConfigError) as excinfo:
            load_config(temp_dir / "config.yaml")
        assert "not found" in excinfo.value.message

    def test_invalid_yaml(self, temp_dir):
        """Test YAML syntax errors"""
        with pytest.raises(ConfigError):
            load_config(write_config(temp_dir, "spotify: [unclosed\n"))

    def test_invalid_utf8(self, temp_dir):
        """Test a config.yaml that is not UTF-8"""
        path = temp_dir / "config.yaml"
        path.write_bytes(b"spotify:\n  client_id: \xff\xfe\n")

        with pytest.raises(ConfigError) as excinfo:
            load_config(path)

        assert excinfo.value.details["file_path"] == str(path)

    def test_missing_section(self, temp_dir):
        """Test a config without output section"""
        text = "spotify:\n  client_id: abc\n  client_secret: def\n"
        with pytest.raises(ConfigError) as excinfo:
            load_config(write_config(temp_dir, text))
        assert excinfo.value.details["missing_section"] == "output"

    def test_empty_client_id(self, temp_dir):
        """Test required credentials"""
        text = BASE.format(directory=temp_dir).replace("client_id: abc", "client_id: ''")
        with pytest.raises(ConfigError) as excinfo:
            load_config(write_config(temp_dir, text))
        assert excinfo.value.details["field"] == "spotify.client_id"

    @pytest.mark.parametrize("line,field", [
        ("playlist_page_size: 51", "fetch.playlist_page_size"),
        ("track_page_size: 0", "fetch.track_page_size"),
        ("workers: 0", "fetch.workers"),
        ("workers: yes", "fetch.workers"),
        ("retries: -1", "fetch.retries"),
        ("timeout: 0", "fetch.timeout"),
    ])
    def test_invalid_fetch_values(self, temp_dir, line, field):
        """Test values outside the API limits"""
        text = BASE.format(directory=temp_dir) + f"fetch:\n  {line}\n"
        with pytest.raises(ConfigError) as excinfo:
            load_config(write_config(temp_dir, text))
        assert excinfo.value.details["field"] == field
