import json
import math

import pytest

from extraction import cli


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_match_command_prints_assignment(tmp_path, capsys):
    pdfs = _write(tmp_path / "pdfs.json", [{"filename": "x", "doi": "10.1/ABC", "pages": 3}])
    papers = _write(tmp_path / "papers.json", [{"title": "Other", "doi": "10.1/abc", "year": None}])

    exit_code = cli.main(["match", str(pdfs), str(papers)])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output == [{"pdf_index": 0, "paper_index": 0, "score": 1.0, "match_type": "doi"}]


def test_match_command_supports_async_and_threshold(tmp_path, capsys):
    pdfs = _write(tmp_path / "pdfs.json", [{"filename": "Deep-Residual-Learning"}])
    papers = _write(tmp_path / "papers.json", [{"title": "Deep Residual Learning for Image Recognition"}])

    exit_code = cli.main(["match", str(pdfs), str(papers), "--async", "--min-confidence", "0.9"])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == []


def test_match_command_reports_bad_input(tmp_path, capsys):
    pdfs = _write(tmp_path / "pdfs.json", {"filename": "x"})
    papers = _write(tmp_path / "papers.json", [])

    exit_code = cli.main(["match", str(pdfs), str(papers)])

    assert exit_code == 1
    assert "JSON array" in capsys.readouterr().err


def test_field_probs_command_prints_one_row_per_result(tmp_path, capsys):
    line = {
        "custom_id": "request-1",
        "response": {
            "status_code": 200,
            "body": {
                "choices": [
                    {
                        "message": {"role": "assistant", "content": '{"rct": "yes"}'},
                        "logprobs": {
                            "content": [
                                {"token": '{"rct": "', "logprob": -0.5},
                                {"token": "yes", "logprob": 0.0},
                                {"token": '"}', "logprob": -0.5},
                            ]
                        },
                    }
                ]
            },
        },
    }
    empty = {"custom_id": "request-2", "response": {"status_code": 200, "body": {"choices": [
        {"message": {"role": "assistant", "content": "{}"}, "logprobs": {"content": []}}
    ]}}}
    results = tmp_path / "results.jsonl"
    results.write_text(json.dumps(line) + "\n" + json.dumps(empty) + "\n", encoding="utf-8")

    exit_code = cli.main(["field-probs", str(results), "--key", "rct", "--key", "blinded"])

    assert exit_code == 0
    rows = [json.loads(row) for row in capsys.readouterr().out.splitlines()]
    assert rows[0]["custom_id"] == "request-1"
    assert rows[0]["field_probabilities"] == {"rct": 1.0}
    assert rows[1]["perplexity_score"] == "N/A"
    assert rows[1]["field_probabilities"] == {}


def test_field_probs_command_can_keep_opening_quote(tmp_path, capsys):
    line = {
        "custom_id": "request-1",
        "response": {"body": {"choices": [{
            "message": {"role": "assistant", "content": '{"rct": "yes"}'},
            "logprobs": {"content": [
                {"token": '{"rct": "', "logprob": -0.5},
                {"token": 'yes"}', "logprob": 0.0},
            ]},
        }]}},
    }
    results = tmp_path / "results.jsonl"
    results.write_text(json.dumps(line) + "\n", encoding="utf-8")

    cli.main(["field-probs", str(results), "--key", "rct", "--keep-opening-quote"])

    row = json.loads(capsys.readouterr().out)
    assert row["field_probabilities"]["rct"] == pytest.approx(math.exp(-0.5))


def test_match_command_takes_doi_from_pdf_fulltext(tmp_path, capsys):
    pdfs = _write(
        tmp_path / "pdfs.json",
        [{"filename": "scan-0042.pdf", "fulltext": "Nature 521, doi:10.1038/nature14539"}],
    )
    papers = _write(
        tmp_path / "papers.json",
        [{"title": "Unrelated", "doi": "10.1000/other"}, {"title": "Deep learning", "doi": "10.1038/NATURE14539"}],
    )

    exit_code = cli.main(["match", str(pdfs), str(papers)])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output == [{"pdf_index": 0, "paper_index": 1, "score": 1.0, "match_type": "doi"}]


def test_field_probs_command_maps_field_names_to_keys(tmp_path, capsys):
    line = {
        "custom_id": "request-1",
        "response": {"body": {"choices": [{
            "message": {"role": "assistant", "content": '{"study_design": "rct"}'},
            "logprobs": {"content": [
                {"token": '{"study_design": "', "logprob": -0.5},
                {"token": "rct", "logprob": 0.0},
                {"token": '"}', "logprob": -0.5},
            ]},
        }]}},
    }
    results = tmp_path / "results.jsonl"
    results.write_text(json.dumps(line) + "\n", encoding="utf-8")

    exit_code = cli.main(["field-probs", str(results), "--field", "Study Design"])

    assert exit_code == 0
    row = json.loads(capsys.readouterr().out)
    assert row["field_probabilities"] == {"study_design": 1.0}


def test_field_probs_command_requires_a_key_or_field(tmp_path):
    results = tmp_path / "results.jsonl"
    results.write_text("", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["field-probs", str(results)])

    assert excinfo.value.code == 2
