"""Tests for the batch runner."""

import json

import pandas as pd

from skillrec import cli


def test_extract_prints_json_lines(tmp_path, capsys) -> None:
    src = tmp_path / "resume.txt"
    src.write_text("Skills:\n- Python\n- Docker\n", encoding="utf-8")
    assert cli.main(["extract", "--in", str(src)]) == 0
    rows = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert {"python", "docker"} <= {r["name"] for r in rows}
    assert all(0.0 <= r["confidence"] <= 1.0 for r in rows)


def test_recommend_writes_csv(tmp_path, users, courses) -> None:
    snapshot = tmp_path / "snapshot.json"
    snapshot.write_text(
        json.dumps(
            {
                "users": [u.model_dump(mode="json") for u in users],
                "courses": [c.model_dump(mode="json") for c in courses],
            }
        ),
        encoding="utf-8",
    )
    out = tmp_path / "recs.csv"
    code = cli.main(["recommend", "--snapshot", str(snapshot), "--user", "u1", "--topk", "2", "--out", str(out)])
    assert code == 0
    df = pd.read_csv(out)
    assert list(df.columns) == ["user_id", "rank", "course_id", "title", "score", "reason"]
    assert df["rank"].tolist() == list(range(1, len(df) + 1))
    assert len(df) <= 2
    assert df.iloc[0]["course_id"] == "c2"


def test_recommend_unknown_user_fails(tmp_path) -> None:
    snapshot = tmp_path / "snapshot.json"
    snapshot.write_text(json.dumps({"users": [], "courses": []}), encoding="utf-8")
    code = cli.main(["recommend", "--snapshot", str(snapshot), "--user", "ghost", "--out", str(tmp_path / "o.csv")])
    assert code == 1
