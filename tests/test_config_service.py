import re
from datetime import datetime

import pytest

from dpanel.schemas.config import ConfigPatch
from dpanel.services import config_service
from dpanel.services.config_service import (
    DisablePeriod,
    apply_patch,
    backup_config,
    parse_config,
    parse_lines,
    remaining_disable_period,
    update_config,
)

START = 1700000000


def parse_text(text):
    return parse_lines(text.splitlines()).document


def patched_text(text, **patch):
    return apply_patch(text.split("\n"), ConfigPatch(**patch)).text


# --- parse ---

def test_parse_sample_config(sample_config):
    document = parse_text(sample_config)

    assert document.basic == {
        "language": "en_US",
        "disable": "false",
        "expire_hours": "2",
        "timestamp": "1700000000",
        "update": "yes",
        "mode": "normal",
        "web_ip": "0.0.0.0",
        "web_port": "9090",
    }
    assert document.protected_paths == ["/etc", "/usr/bin", "/boot"]
    assert document.command_rules == ["rm -rf /", "mkfs.*"]


def test_assignment_inside_section_is_a_basic_setting():
    document = parse_text("# protected_paths_list\n/etc\nmode = strict\n/var\n")

    assert document.basic == {"mode": "strict"}
    assert document.protected_paths == ["/etc", "/var"]


def test_section_items_keep_their_whitespace():
    document = parse_text("# command_intercept_rules\n  shutdown -h now  \n")

    assert document.command_rules == ["  shutdown -h now  "]


def test_malformed_lines_are_reported_not_fatal():
    result = parse_lines(["stray text", "=nokey", "mode=strict"])

    assert result.document.basic == {"mode": "strict"}
    assert len(result.warnings) == 2
    assert result.warnings[0].startswith("line 1:")
    assert result.warnings[1].startswith("line 2:")


def test_parse_config_missing_file(tmp_path):
    with pytest.raises(OSError):
        parse_config(tmp_path / "missing.conf")


# --- patch ---

def test_empty_patch_is_a_no_op(sample_config):
    assert parse_text(patched_text(sample_config)) == parse_text(sample_config)
    assert patched_text(sample_config) == sample_config


def test_basic_patch_only_touches_target_lines(sample_config):
    before = sample_config.split("\n")
    result = apply_patch(before, ConfigPatch(basic={"mode": "strict"}))

    assert len(result.lines) == len(before)
    changed = [i for i, (old, new) in enumerate(zip(before, result.lines)) if old != new]
    assert changed == [before.index("mode=normal")]
    assert result.lines[changed[0]] == "mode=strict"
    assert result.warnings == []


def test_basic_patch_renders_bools_and_numbers(sample_config):
    text = patched_text(sample_config, basic={"disable": True, "expire_hours": 1.5, "web_port": 8081})

    assert "disable=true\n" in text
    assert "expire_hours=1.5\n" in text
    assert "web_port=8081\n" in text


def test_basic_patch_does_not_add_missing_keys(sample_config):
    text = patched_text(sample_config, basic={"brand_new": "1"})

    assert "brand_new" not in text


def test_basic_patch_skips_unsupported_values(sample_config):
    result = apply_patch(sample_config.split("\n"), ConfigPatch(basic={"mode": ["strict"], "language": "fr"}))

    assert "mode=normal" in result.lines
    assert "language=fr" in result.lines
    assert len(result.warnings) == 1
    assert "basic.mode" in result.warnings[0]


def test_replace_protected_paths_keeps_order_and_header(sample_config):
    new_paths = ["/srv", "/var/lib", "/srv"]
    text = patched_text(sample_config, protected_paths=new_paths)
    document = parse_text(text)

    assert document.protected_paths == new_paths
    assert document.command_rules == ["rm -rf /", "mkfs.*"]
    assert "# ===== protected_paths_list =====\n/srv\n/var/lib\n/srv\n# ===== command_intercept_rules =====" in text


def test_replace_last_section_runs_to_end_of_file(sample_config):
    text = patched_text(sample_config, command_rules=["shutdown"])

    assert text.endswith("# ===== command_intercept_rules =====\nshutdown\n")
    assert parse_text(text).protected_paths == ["/etc", "/usr/bin", "/boot"]


def test_section_can_be_emptied(sample_config):
    text = patched_text(sample_config, protected_paths=[])

    assert parse_text(text).protected_paths == []
    assert "# ===== protected_paths_list =====\n# ===== command_intercept_rules =====" in text


def test_non_string_section_items_are_skipped(sample_config):
    result = apply_patch(sample_config.split("\n"), ConfigPatch(protected_paths=["/a", 3, None, "/b", "x\ny"]))

    assert parse_text(result.text).protected_paths == ["/a", "/b"]
    assert len(result.warnings) == 3


def test_missing_section_is_skipped_with_warning():
    text = "mode=normal\n# protected_paths_list\n/etc\n"
    result = apply_patch(text.split("\n"), ConfigPatch(basic={"mode": "strict"}, command_rules=["halt"]))

    assert result.text == "mode=strict\n# protected_paths_list\n/etc\n"
    assert result.warnings == ["section command_intercept_rules not found; command_rules left unchanged"]


def test_first_header_wins_for_duplicate_markers():
    text = "# protected_paths_list\n/a\n# protected_paths_list\n/b\n"
    result = apply_patch(text.split("\n"), ConfigPatch(protected_paths=["/z"]))

    assert result.text == "# protected_paths_list\n/z\n# protected_paths_list\n/b\n"


@pytest.mark.parametrize("text", ["mode=normal", "mode=normal\n", "mode=normal\n\n\n"])
def test_output_ends_with_single_newline(text):
    assert patched_text(text, basic={"mode": "strict"}) == "mode=strict\n"


# --- backup / update ---

def test_backup_name_uses_timestamp(tmp_path):
    path = tmp_path / "deeprotection.conf"
    path.write_text("mode=normal\n")

    backup = backup_config(path, now=datetime(2024, 1, 2, 3, 4, 5))

    assert backup.name == "deeprotection.conf.bak.20240102030405"
    assert backup.read_text() == "mode=normal\n"


def test_update_config_backs_up_then_writes(tmp_path, sample_config):
    path = tmp_path / "deeprotection.conf"
    path.write_text(sample_config)
    position = sample_config.split("\n").index("mode=normal")

    update_config(path, ConfigPatch(basic={"mode": "strict"}))

    backups = list(tmp_path.glob("deeprotection.conf.bak.*"))
    assert len(backups) == 1
    assert re.fullmatch(r"deeprotection\.conf\.bak\.\d{14}", backups[0].name)
    assert backups[0].read_text() == sample_config
    assert path.read_text().split("\n")[position] == "mode=strict"


def test_failed_backup_blocks_the_write(tmp_path, sample_config, monkeypatch):
    path = tmp_path / "deeprotection.conf"
    path.write_text(sample_config)

    def broken_copy(src, dst):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(config_service.shutil, "copy2", broken_copy)

    with pytest.raises(OSError):
        update_config(path, ConfigPatch(basic={"mode": "strict"}))
    assert path.read_text() == sample_config


# --- remaining disable period ---

BASIC = {"expire_hours": "2", "timestamp": str(START)}


def test_remaining_one_hour():
    remaining = remaining_disable_period(BASIC, now=START + 3600)

    assert remaining == DisablePeriod(hours=1, minutes=0)
    assert str(remaining) == "1h 00m"


def test_remaining_partial_hour():
    assert str(remaining_disable_period(BASIC, now=START + 1800)) == "1h 30m"
    assert str(remaining_disable_period({"expire_hours": "0.5", "timestamp": str(START)}, now=START)) == "0h 30m"


@pytest.mark.parametrize("offset", [7200, 3 * 3600])
def test_remaining_expired(offset):
    assert remaining_disable_period(BASIC, now=START + offset) == "Expired"


@pytest.mark.parametrize("basic, message", [
    ({"timestamp": str(START)}, "Invalid expire_hours"),
    ({"expire_hours": "soon", "timestamp": str(START)}, "Invalid expire_hours"),
    ({"expire_hours": "inf", "timestamp": str(START)}, "Invalid expire_hours"),
    ({"expire_hours": "2"}, "Invalid timestamp"),
    ({"expire_hours": "2", "timestamp": "yesterday"}, "Invalid timestamp"),
])
def test_remaining_invalid_values(basic, message):
    assert remaining_disable_period(basic, now=START) == message


# --- non-UTF-8 content ---

LATIN1_CONFIG = b"# r\xe9glage du d\xe9mon\nmode=normal\nweb_ip=10.0.0.1\n# protected_paths_list\n/home/fran\xe7ois\n/etc\n"


def test_parse_config_tolerates_non_utf8(tmp_path):
    path = tmp_path / "deeprotection.conf"
    path.write_bytes(LATIN1_CONFIG)

    document = parse_config(path).document

    assert document.basic == {"mode": "normal", "web_ip": "10.0.0.1"}
    assert document.protected_paths == ["/home/fran\ufffdois", "/etc"]


def test_update_keeps_non_utf8_bytes(tmp_path):
    path = tmp_path / "deeprotection.conf"
    path.write_bytes(LATIN1_CONFIG)

    update_config(path, ConfigPatch(basic={"mode": "strict"}))

    assert path.read_bytes() == LATIN1_CONFIG.replace(b"mode=normal", b"mode=strict")


# --- wrongly shaped patch parts ---

def test_wrongly_typed_section_is_skipped(sample_config):
    result = apply_patch(
        sample_config.split("\n"),
        ConfigPatch(basic={"mode": "strict"}, protected_paths="/srv", command_rules={"a": 1}),
    )

    document = parse_text(result.text)
    assert document.basic["mode"] == "strict"
    assert document.protected_paths == ["/etc", "/usr/bin", "/boot"]
    assert document.command_rules == ["rm -rf /", "mkfs.*"]
    assert result.warnings == [
        "protected_paths: expected a list, got str; skipped",
        "command_rules: expected a list, got dict; skipped",
    ]


def test_wrongly_typed_basic_is_skipped(sample_config):
    result = apply_patch(sample_config.split("\n"), ConfigPatch(basic=["mode"], command_rules=["halt"]))

    assert parse_text(result.text).command_rules == ["halt"]
    assert "mode=normal" in result.lines
    assert result.warnings == ["basic: expected an object, got list; skipped"]
