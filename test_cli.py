import json

from click.testing import CliRunner

from bagsum.cli import cli


def test_write_and_validate(bag_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["write", "sha256", str(bag_dir)])
    assert result.exit_code == 0, result.output
    assert "Wrote 3 checksums" in result.output
    assert (bag_dir / "tagmanifest-sha256.txt").is_file()

    result = runner.invoke(cli, ["validate", "sha256", str(bag_dir)])
    assert result.exit_code == 0, result.output
    assert "Valid" in result.output


def test_validate_reports_discrepancies(bag_dir):
    runner = CliRunner()
    runner.invoke(cli, ["write", "md5", str(bag_dir)])
    (bag_dir / "data" / "b.txt").unlink()
    (bag_dir / "data" / "d.txt").write_text("new")

    result = runner.invoke(cli, ["validate", "md5", str(bag_dir)])
    assert result.exit_code == 1
    assert "Bag is invalid:" in result.output
    assert "  - manifest-md5.txt: missing file 'data/b.txt'" in result.output
    assert "  - manifest-md5.txt: extra file 'data/d.txt'" in result.output


def test_write_twice_fails_without_force(bag_dir):
    runner = CliRunner()
    assert runner.invoke(cli, ["write", "sha1", str(bag_dir)]).exit_code == 0

    result = runner.invoke(cli, ["write", "sha1", str(bag_dir)])
    assert result.exit_code == 255
    assert "must not exist" in result.output

    (bag_dir / "data" / "a.txt").write_text("changed")
    result = runner.invoke(cli, ["write", "--force", "sha1", str(bag_dir)])
    assert result.exit_code == 0, result.output
    assert runner.invoke(cli, ["validate", "sha1", str(bag_dir)]).exit_code == 0


def test_write_with_cache_file(bag_dir, tmp_path):
    cache_path = tmp_path / "cache.json"
    result = CliRunner().invoke(cli, ["write", "--cache", str(cache_path), "sha256", str(bag_dir)])
    assert result.exit_code == 0, result.output

    cached = json.loads(cache_path.read_text())
    assert cached["algorithm"] == "sha256"
    assert sorted(cached["sums"]) == ["data/a.txt", "data/b.txt", "data/nested/c.txt"]


def test_workers_from_environment(bag_dir):
    result = CliRunner().invoke(cli, ["write", "sha512", str(bag_dir)], env={"BAGSUM_WRITE_WORKERS": "4"})
    assert result.exit_code == 0, result.output


def test_fatal_errors(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["write", "sha256", str(tmp_path)])
    assert result.exit_code == 255
    assert "is not a bag" in result.output

    (tmp_path / "data").mkdir()
    result = runner.invoke(cli, ["validate", "sha256", str(tmp_path)])
    assert result.exit_code == 255
    assert "does not exist" in result.output


def test_usage_errors(bag_dir):
    runner = CliRunner()
    assert runner.invoke(cli, ["write", "crc32", str(bag_dir)]).exit_code == 2
    assert runner.invoke(cli, ["validate", "md5", str(bag_dir / "nope")]).exit_code == 2
    assert runner.invoke(cli, ["validate", "md5"]).exit_code == 2
