from __future__ import annotations

import json
from pathlib import Path

import pytest

from scripts import create_user


def test_create_user_registers_hashed_record(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    db_path = tmp_path / "db.json"
    monkeypatch.setattr(create_user.getpass, "getpass", lambda prompt="": "p1")

    exit_code = create_user.main(["u1", "a@b.com", "--db", str(db_path)])

    assert exit_code == 0
    users = json.loads(db_path.read_text(encoding="utf-8"))["users"]
    assert len(users) == 1
    assert users[0]["email"] == "a@b.com"
    assert users[0]["password"] != "p1"
    assert users[0]["_id"] in capsys.readouterr().out


def test_create_user_reports_duplicate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    db_path = tmp_path / "db.json"
    monkeypatch.setattr(create_user.getpass, "getpass", lambda prompt="": "p1")

    assert create_user.main(["u1", "a@b.com", "--db", str(db_path)]) == 0
    assert create_user.main(["u2", "A@B.com", "--db", str(db_path)]) == 1
    assert "User already exist" in capsys.readouterr().err


def test_create_user_gives_up_after_mismatched_passwords(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    answers = iter(["one", "two"] * 3)
    monkeypatch.setattr(create_user.getpass, "getpass", lambda prompt="": next(answers))

    with pytest.raises(SystemExit):
        create_user.main(["u1", "a@b.com", "--db", str(tmp_path / "db.json")])

    assert not (tmp_path / "db.json").exists()
