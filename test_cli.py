#!/usr/bin/env python3
"""
test command line entry point.

run with: pytest test_cli.py -v
"""

import io
import json

import pytest

from citenet.cli import main, load_papers


@pytest.fixture
def papers_file(tmp_path):
    records = [
        {"paperId": "a", "title": "Paper A", "year": 2020, "citationCount": 500,
         "fieldsOfStudy": ["Biology"]},
        {"paperId": "b", "title": "Paper B", "year": 2015, "citationCount": 800,
         "fieldsOfStudy": ["Biology"]},
        {"id": "c", "title": "Paper C", "year": 2010, "citation_count": 40},
    ]
    path = tmp_path / "papers.json"
    path.write_text(json.dumps(records))
    return path


class TestLoadPapers:
    def test_array(self, papers_file):
        papers = load_papers(str(papers_file))
        assert [p.id for p in papers] == ["a", "b", "c"]
        assert papers[2].citation_count == 40

    def test_wrapped_object(self, tmp_path):
        path = tmp_path / "wrapped.json"
        path.write_text(json.dumps({"papers": [{"paperId": "x"}]}))
        assert [p.id for p in load_papers(str(path))] == ["x"]

    def test_stdin(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO('[{"paperId": "s"}]'))
        assert [p.id for p in load_papers("-")] == ["s"]

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('"nope"')
        with pytest.raises(ValueError):
            load_papers(str(path))


class TestBuildCommand:
    def test_build_hierarchical(self, papers_file, capsys):
        code = main(["build", str(papers_file), "--origin", "a", "--layout", "hierarchical"])
        assert code == 0

        output = json.loads(capsys.readouterr().out)
        assert output["stats"]["total_edges"] == 1
        assert output["graph"]["origin_paper_id"] == "a"
        assert {n["id"] for n in output["graph"]["nodes"]} == {"a", "b", "c"}

    def test_build_semantic_no_layout(self, papers_file, capsys):
        code = main(["build", str(papers_file), "--origin", "a", "--semantic", "--layout", "none"])
        assert code == 0

        edges = json.loads(capsys.readouterr().out)["graph"]["edges"]
        assert any(e["edge_type"] == "semantic" for e in edges)

    def test_build_force_iterations(self, papers_file, capsys):
        assert main(["build", str(papers_file), "--origin", "a", "--iterations", "5"]) == 0
        nodes = json.loads(capsys.readouterr().out)["graph"]["nodes"]
        origin = next(n for n in nodes if n["is_origin"])
        assert (origin["x"], origin["y"]) == (0.0, 0.0)

    def test_missing_file(self, tmp_path, capsys):
        assert main(["build", str(tmp_path / "missing.json"), "--origin", "a"]) == 1
        assert capsys.readouterr().out == ""

    def test_no_command(self, capsys):
        assert main([]) == 1
