import io
import json

import pytest

import app_runtime as rt
import notes_cli


def test_text_output_from_file(tmp_path, capsys):
    src = tmp_path / "notes.txt"
    src.write_text("Buy milk\n  Check price\nFix the shelf\n", "utf-8")

    notes_cli.main([str(src)])

    out = capsys.readouterr().out
    assert out.startswith("# Tasks\n\n## Buy milk\n\n")
    assert "# DIY Projects" in out


def test_json_output_from_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("repair the cabinet\ncabinet needs paint"))

    notes_cli.main(["--output", "json"])

    data = json.loads(capsys.readouterr().out)
    assert data["categories"] == ["Furniture"]
    assert data["structured_notes"][1]["connections"] == ["repair the cabinet..."]


def test_locale_from_config_is_used(monkeypatch, capsys):
    rt.save_config({"LOCALE": "pl"})
    monkeypatch.setattr("sys.stdin", io.StringIO("nowa szafka"))

    notes_cli.main([])

    assert capsys.readouterr().out.startswith("# Meble\n")


def test_empty_input_exits_with_error(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("   \n"))

    with pytest.raises(SystemExit) as exc:
        notes_cli.main([])

    assert exc.value.code == 1
    assert capsys.readouterr().err.startswith("Error: ")


def test_missing_file_exits_with_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        notes_cli.main([str(tmp_path / "nope.txt")])

    assert exc.value.code == 1
    assert "File not found" in capsys.readouterr().err


def test_notion_flag_requires_configuration(monkeypatch, capsys):
    monkeypatch.setattr(rt, "keychain_get", lambda name: None)
    monkeypatch.setattr("sys.stdin", io.StringIO("Buy milk"))

    with pytest.raises(SystemExit) as exc:
        notes_cli.main(["--notion"])

    assert exc.value.code == 1
    assert "Notion is not configured" in capsys.readouterr().err


def test_notion_flag_appends_outline(monkeypatch, capsys):
    rt.save_config({"NOTION_PAGE_ID": "PAGE"})
    monkeypatch.setattr(rt, "keychain_get", lambda name: "tok")
    monkeypatch.setattr("sys.stdin", io.StringIO("Buy milk"))

    sent = {}

    def fake_send(self, result, source_name):
        sent.update({"categories": result.categories, "source": source_name, "page": self.page_id})
        return "https://www.notion.so/PAGE#abc"

    monkeypatch.setattr(rt.Pipeline, "send_to_notion", fake_send)

    notes_cli.main(["--notion"])

    assert sent == {"categories": ["Tasks"], "source": "stdin", "page": "PAGE"}
    assert "https://www.notion.so/PAGE#abc" in capsys.readouterr().err


def test_non_utf8_file_exits_with_error(tmp_path, capsys):
    src = tmp_path / "latin1.txt"
    src.write_bytes(b"\xff\xfe caf\xe9")

    with pytest.raises(SystemExit) as exc:
        notes_cli.main([str(src)])

    assert exc.value.code == 1
    assert "Not a UTF-8 text file" in capsys.readouterr().err


def test_directory_path_exits_with_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        notes_cli.main([str(tmp_path)])

    assert exc.value.code == 1
    assert capsys.readouterr().err.startswith("Error: Could not read ")


def test_corrupt_config_exits_with_error(monkeypatch, capsys):
    rt.ensure_dirs()
    rt.CONFIG_PATH.write_text("{LOCALE: pl", "utf-8")
    monkeypatch.setattr("sys.stdin", io.StringIO("Buy milk"))

    with pytest.raises(SystemExit) as exc:
        notes_cli.main([])

    assert exc.value.code == 1
    assert "Corrupt config" in capsys.readouterr().err


def test_default_locale_comes_from_app_contract(monkeypatch, capsys):
    monkeypatch.setattr(notes_cli, "DEFAULT_LOCALE", "pl")
    monkeypatch.setattr("sys.stdin", io.StringIO("nowa szafka"))

    notes_cli.main([])

    assert capsys.readouterr().out.startswith("# Meble\n")


def test_broken_pipe_exits_quietly(monkeypatch):
    def closed_stdout(args):
        raise BrokenPipeError

    monkeypatch.setattr(notes_cli, "run", closed_stdout)

    with pytest.raises(SystemExit) as exc:
        notes_cli.main(["notes.txt"])

    assert exc.value.code == 0


def test_keyboard_interrupt_exits_quietly(monkeypatch):
    def interrupted(args):
        raise KeyboardInterrupt

    monkeypatch.setattr(notes_cli, "run", interrupted)

    with pytest.raises(SystemExit) as exc:
        notes_cli.main([])

    assert exc.value.code == 0
