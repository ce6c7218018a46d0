"""
Tests for Config and the get_config() singleton.
"""
import pytest

from zip2asn1.config import Config, get_config, reset_config


def test_defaults():
    config = Config()
    assert config.zip_name is None
    assert config.item_name is None
    assert config.item_match == 'exact'
    assert config.chunk_size == 65536
    assert config.log_level == 'WARNING'


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('ENV_ZIP_NAME', '/tmp/a.zip')
    monkeypatch.setenv('ENV_ZIP_ITEM_NAME', 'a/b.txt')
    monkeypatch.setenv('ZIP_ITEM_MATCH', 'CaseFold')
    monkeypatch.setenv('CHUNK_SIZE', '1024')
    monkeypatch.setenv('LOG_LEVEL', 'debug')

    config = Config()

    assert config.zip_name == '/tmp/a.zip'
    assert config.item_name == 'a/b.txt'
    assert config.item_match == 'casefold'
    assert config.chunk_size == 1024
    assert config.log_level == 'DEBUG'


def test_empty_values_count_as_unset(monkeypatch):
    monkeypatch.setenv('ENV_ZIP_NAME', '')
    assert Config().zip_name is None


def test_env_file(temp_dir):
    env = temp_dir / 'custom.env'
    env.write_text('ENV_ZIP_ITEM_NAME=from-file.txt\n')
    assert Config(str(env)).item_name == 'from-file.txt'


def test_get_config_is_singleton():
    assert get_config() is get_config()


def test_reset_config():
    first = get_config()
    reset_config()
    assert get_config() is not first


def test_non_integer_chunk_size_is_rejected(monkeypatch):
    monkeypatch.setenv('CHUNK_SIZE', 'abc')
    with pytest.raises(ValueError, match='CHUNK_SIZE'):
        Config()
