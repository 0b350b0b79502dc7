import json

import pytest

from voxclust.cli import build_parser, main


def _cloud(tmp_path, name="cloud.csv"):
    src = tmp_path / name
    src.write_text("x,y,z\n0,0,0\n1,1,0\n2,2,2\n7,7,7\n")
    return src


def test_cli_default_threshold_is_sqrt2():
    args = build_parser().parse_args(["in.csv"])
    assert args.threshold == pytest.approx(2 ** 0.5)
    assert args.strategy == "kdtree"
    assert not args.no_header


def test_cli_writes_derived_output(tmp_path, capsys):
    src = _cloud(tmp_path)
    main([str(src)])

    result = json.loads(capsys.readouterr().out)
    out = tmp_path / "clusters_cloud.csv"
    assert result["output"] == str(out)
    # (2,2,2) is sqrt(6) away from (1,1,0), so it starts its own cluster
    assert result["cluster_sizes"] == [2, 1, 1]
    assert out.read_text().splitlines() == ["0,0,0,0", "0,1,1,0", "1,2,2,2", "2,7,7,7"]


def test_cli_options(tmp_path, capsys):
    src = tmp_path / "raw.csv"
    src.write_text("0,0,0\n0,0,2\n0,0,4\n")
    out = tmp_path / "custom" / "labels.csv"
    main([str(src), "--no-header", "--threshold", "2", "--strategy", "grid",
          "--cell-size", "1", "--seed", "3", "--output", str(out), "-vv"])

    captured = capsys.readouterr()
    result = json.loads(captured.out)
    assert result["n_clusters"] == 1
    assert result["strategy"] == "grid"
    assert result["seed"] == 3
    assert out.exists()
    assert "Starting cluster 0" in captured.err


def test_cli_prefix_and_log_file(tmp_path, capsys):
    src = _cloud(tmp_path)
    log = tmp_path / "run.log"
    main([str(src), "--prefix", "grouped_", "-v", "--log-file", str(log)])
    capsys.readouterr()
    assert (tmp_path / "grouped_cloud.csv").exists()
    assert "Clustered 4 points into 3 clusters" in log.read_text()


def test_cli_plot(tmp_path, capsys):
    src = _cloud(tmp_path)
    pdf = tmp_path / "clusters.pdf"
    main([str(src), "--plot", str(pdf), "-q"])
    assert json.loads(capsys.readouterr().out)["plot"] == str(pdf)
    assert pdf.exists()


@pytest.mark.parametrize("extra", [["--threshold", "-1"], ["--threshold", "nan"], ["--cell-size", "0"]])
def test_cli_rejects_bad_options(tmp_path, capsys, extra):
    src = _cloud(tmp_path)
    with pytest.raises(SystemExit) as exc:
        main([str(src), *extra])
    assert exc.value.code == 1
    assert "[ERROR] ValueError" in capsys.readouterr().err


def test_cli_missing_input(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "missing.csv")])
    assert exc.value.code == 1
    assert "[ERROR] IngestionError" in capsys.readouterr().err
