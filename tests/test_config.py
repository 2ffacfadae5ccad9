import textwrap

import pytest

from kaboom.config import AppConfig, parse_app_config


def test_parse_app_config_reads_values_relative_to_config(tmp_path):
    config_file = tmp_path / "conf" / "kaboom.xml"
    config_file.parent.mkdir()
    config_file.write_text(
        textwrap.dedent(
            """\
            <kaboom>
              <feed>../public/feed.xml</feed>
              <generator>false</generator>
              <reject-suffix>.archive.xml</reject-suffix>
              <logging>
                <level>DEBUG</level>
                <file>logs/kaboom.log</file>
              </logging>
            </kaboom>
            """
        ),
        encoding="utf-8",
    )

    config = parse_app_config(str(config_file))

    assert config.feed_file == str((tmp_path / "public" / "feed.xml").resolve())
    assert config.generator is False
    assert config.reject_suffix == ".archive.xml"
    assert config.logging.level == "DEBUG"
    assert config.logging.file == str((config_file.parent / "logs" / "kaboom.log").resolve())


def test_parse_app_config_defaults(tmp_path):
    config_file = tmp_path / "kaboom.xml"
    config_file.write_text("<kaboom/>", encoding="utf-8")

    config = parse_app_config(str(config_file))

    assert config == AppConfig()
    assert config.feed_file == "feed.xml"
    assert config.logging.level == "WARNING"


def test_parse_app_config_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_app_config(str(tmp_path / "nope.xml"))


def test_parse_app_config_wrong_root_raises(tmp_path):
    config_file = tmp_path / "kaboom.xml"
    config_file.write_text("<config/>", encoding="utf-8")

    with pytest.raises(ValueError):
        parse_app_config(str(config_file))
