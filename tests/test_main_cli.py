import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import geopandas as gpd
import pandas as pd
from shapely.geometry import Point, Polygon

import main
from Service.container import build_app


class _RecordingLogger:
    def __init__(self, log_dir):
        self.log_dir = log_dir
        self.records = []

    def log(self, msg, level="DEBUG"):
        self.records.append((level, msg))


SQUARE = Polygon([(0, 0), (10, 0), (10, 10), (0, 10)])


class MainCliTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.logger = _RecordingLogger(str(self.tmp / "Log"))
        self.built = []

        def _capture(logger, config=None):
            app = build_app(logger, config)
            self.built.append(app)
            return app

        patches = [
            mock.patch.object(main, "Log", return_value=self.logger),
            mock.patch.object(main, "build_app", side_effect=_capture),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def _write_geojson(self, name, geoms):
        path = self.tmp / name
        gpd.GeoDataFrame({"fid": list(range(len(geoms)))}, geometry=geoms).to_file(path, driver="GeoJSON")
        return path

    def test_areal_file_is_loaded_and_relations_exported(self):
        src = self._write_geojson("parcels.geojson", [SQUARE])
        out = self.tmp / "out" / "relations.csv"

        rc = main.main(["--input", str(src), "--topology", "parcels", "--layer-type", "areal",
                        "--output", str(out)])

        self.assertEqual(rc, 0)
        df = pd.read_csv(out)
        self.assertEqual(list(df.columns), ["topogeo_id", "layer_id", "element_type", "element_id"])
        self.assertEqual(df.values.tolist(), [[1, 1, 3, 1]])

        store = self.built[0].store
        self.assertEqual(store.topology_names(), ["parcels"])
        layer = store.lookup_layer(1, 1).value
        self.assertEqual(layer.feature_type.label, "areal")

    def test_default_output_goes_to_result_folder(self):
        src = self._write_geojson("parcels.geojson", [SQUARE])
        default_out = self.tmp / "Result" / "parcels_relation.csv"

        with mock.patch.object(main, "get_result_path", return_value=default_out) as result_path:
            rc = main.main(["--input", str(src), "--layer-type", "collection"])

        self.assertEqual(rc, 0)
        result_path.assert_called_once_with("parcels_relation.csv")
        self.assertTrue(default_out.exists())

    def test_precision_defaults_from_config(self):
        src = self._write_geojson("points.geojson", [Point(1, 1)])

        with mock.patch.dict(os.environ, {"TOPO_TOPOLOGY_PRECISION": "0.25"}):
            rc = main.main(["--input", str(src), "--layer-type", "puntal",
                            "--output", str(self.tmp / "r.csv")])

        self.assertEqual(rc, 0)
        self.assertEqual(self.built[0].store.lookup_topology("topo").value.precision, 0.25)

    def test_layer_type_mismatch_returns_failure(self):
        src = self._write_geojson("points.geojson", [Point(1, 1)])
        out = self.tmp / "r.csv"

        rc = main.main(["--input", str(src), "--layer-type", "areal", "--output", str(out)])

        self.assertEqual(rc, 1)
        self.assertFalse(out.exists())
        self.assertTrue(any(level == "ERROR" for level, _ in self.logger.records))

    def test_negative_precision_returns_failure(self):
        src = self._write_geojson("points.geojson", [Point(1, 1)])

        rc = main.main(["--input", str(src), "--layer-type", "puntal", "--precision", "-1",
                        "--output", str(self.tmp / "r.csv")])

        self.assertEqual(rc, 1)
        self.assertEqual(self.built[0].store.topology_names(), [])


if __name__ == "__main__":
    unittest.main()
