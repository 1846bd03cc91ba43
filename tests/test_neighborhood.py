"""Tests for the external neighborhood factory, config and CLI."""
import json

import polars as pl
import pytest

from neighborbase import (
    ConfigValidationError,
    ExternalNeighborhood,
    ExternalNeighborhoodFactory,
    NeighborhoodConfig,
    NeighborhoodLoadError,
    ObjectRecord,
)
from neighborbase.cli import main
from neighborbase.config import NEIGHBORHOOD_FILE_KEY


@pytest.fixture
def objects():
    return [
        ObjectRecord("o1", ("berlin", "BER")),
        ObjectRecord("o2", ("potsdam",)),
        ObjectRecord("o3", ("hamburg",), external_id="HH"),
        ObjectRecord("o4", ()),
    ]


@pytest.fixture
def neighbor_file(tmp_path):
    path = tmp_path / "neighbors.txt"
    path.write_text("berlin potsdam HH\npotsdam BER\nmunich berlin\nHH\n", encoding="utf-8")
    return path


# ========== NeighborhoodConfig Tests ==========

class TestNeighborhoodConfig:
    def test_defaults(self):
        config = NeighborhoodConfig()
        assert config.file is None
        assert config.encoding == "utf-8"
        assert config.include_subject is False

    def test_file_coerced_to_path(self, tmp_path):
        config = NeighborhoodConfig(file=str(tmp_path / "n.txt"))
        assert config.file == tmp_path / "n.txt"

    def test_validate_missing_file(self):
        with pytest.raises(ConfigValidationError):
            NeighborhoodConfig().validate()

    def test_validate_unknown_encoding(self, tmp_path):
        with pytest.raises(ConfigValidationError):
            NeighborhoodConfig(file=tmp_path / "n.txt", encoding="no-such-codec").validate()

    def test_to_dict_uses_option_key(self, tmp_path):
        d = NeighborhoodConfig(file=tmp_path / "n.txt").to_dict()
        assert d[NEIGHBORHOOD_FILE_KEY] == str(tmp_path / "n.txt")

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.json"
        NeighborhoodConfig(file=tmp_path / "n.txt", include_subject=True).save(path)
        loaded = NeighborhoodConfig.load(path)
        assert loaded.file == tmp_path / "n.txt"
        assert loaded.include_subject is True

    def test_load_missing_gives_defaults(self, tmp_path):
        assert NeighborhoodConfig.load(tmp_path / "nope.json") == NeighborhoodConfig()

    def test_from_dict_accepts_plain_file_key(self):
        assert NeighborhoodConfig.from_dict({"file": "n.txt"}).file.name == "n.txt"


# ========== ExternalNeighborhood Tests ==========

class TestExternalNeighborhood:
    def test_instantiate(self, objects, neighbor_file):
        hood = ExternalNeighborhoodFactory(neighbor_file).instantiate(objects)
        assert isinstance(hood, ExternalNeighborhood)
        assert hood.get_neighbors("o1") == ("o2", "o3")
        assert hood.get_neighbors("o2") == ("o1",)
        assert len(hood) == 3

    def test_absent_versus_empty(self, objects, neighbor_file):
        hood = ExternalNeighborhoodFactory(neighbor_file).instantiate(objects)
        assert hood.has_neighbors("o3")
        assert hood.store.get("o3") == ()
        assert not hood.has_neighbors("o4")
        assert hood.store.get("o4") is None
        assert hood.get_neighbors("o4") == ()

    def test_names(self):
        assert ExternalNeighborhood.long_name == "External Neighborhood"
        assert ExternalNeighborhood.short_name == "external-neighborhood"

    def test_parser_diagnostics_kept(self, objects, neighbor_file):
        factory = ExternalNeighborhoodFactory(neighbor_file)
        factory.instantiate(objects)
        assert [w.label for w in factory.last_parser.warnings] == ["munich"]

    def test_from_config(self, objects, neighbor_file):
        config = NeighborhoodConfig(file=neighbor_file, include_subject=True)
        hood = ExternalNeighborhoodFactory.from_config(config).instantiate(objects)
        assert hood.get_neighbors("o1") == ("o1", "o2", "o3")

    def test_from_config_validates(self):
        with pytest.raises(ConfigValidationError):
            ExternalNeighborhoodFactory.from_config(NeighborhoodConfig())

    def test_missing_file_is_fatal(self, objects, tmp_path):
        factory = ExternalNeighborhoodFactory(tmp_path / "missing.txt")
        with pytest.raises(NeighborhoodLoadError):
            factory.instantiate(objects)

    def test_generator_source(self, neighbor_file):
        source = ((f"o{i}", [name]) for i, name in enumerate(["berlin", "potsdam"], start=1))
        hood = ExternalNeighborhoodFactory(neighbor_file).instantiate(source)
        assert hood.get_neighbors("o1") == ("o2",)


# ========== CLI Tests ==========

class TestCLI:
    @pytest.fixture
    def objects_csv(self, tmp_path):
        path = tmp_path / "objects.csv"
        path.write_text("id,labels\no1,berlin;BER\no2,potsdam\no3,hamburg\n", encoding="utf-8")
        return path

    def test_load_and_summarize(self, objects_csv, neighbor_file, capsys):
        code = main(["--objects", str(objects_csv), "--neighbors", str(neighbor_file)])
        out = capsys.readouterr().out
        assert code == 0
        assert "Neighborhoods:        2" in out
        assert "Skipped lines:        2" in out

    def test_writes_parquet(self, objects_csv, neighbor_file, tmp_path):
        output = tmp_path / "pairs.parquet"
        code = main([
            "--objects", str(objects_csv),
            "--neighbors", str(neighbor_file),
            "--output", str(output),
        ])
        assert code == 0
        df = pl.read_parquet(output)
        assert df.filter(pl.col("object_id") == "o2")["neighbor_id"].to_list() == ["o1"]

    def test_parquet_objects_and_config(self, neighbor_file, tmp_path, capsys):
        objects = tmp_path / "objects.parquet"
        pl.DataFrame({
            "id": [1, 2, 3],
            "labels": [["berlin"], ["potsdam"], ["hamburg"]],
            "eid": [None, None, "HH"],
        }).write_parquet(objects)
        config = tmp_path / "config.json"
        config.write_text(json.dumps({NEIGHBORHOOD_FILE_KEY: str(neighbor_file)}), encoding="utf-8")

        code = main([
            "--objects", str(objects),
            "--config", str(config),
            "--external-id-column", "eid",
        ])
        assert code == 0
        assert "Neighborhoods:        3" in capsys.readouterr().out

    def test_missing_neighbor_file(self, objects_csv, tmp_path, capsys):
        code = main(["--objects", str(objects_csv), "--neighbors", str(tmp_path / "nope.txt")])
        assert code == 1
        assert "failed" in capsys.readouterr().err

    def test_no_neighbor_file_configured(self, objects_csv, capsys):
        assert main(["--objects", str(objects_csv)]) == 2
