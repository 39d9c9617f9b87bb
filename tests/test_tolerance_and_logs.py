import datetime
import os
import tempfile
import unittest

from shapely.geometry import GeometryCollection, Point

from Common.log import LOG_FILE_PREFIX
from Function.log_cleanup import clean_old_logs
from Service.topo_modules.mesh import TopoStore, ToleranceResolver


class _RecordingLogger:
    def __init__(self):
        self.records = []

    def log(self, msg, level="DEBUG"):
        self.records.append((level, msg))


class ToleranceResolverTests(unittest.TestCase):
    def setUp(self):
        self.store = TopoStore(_RecordingLogger())
        self.resolver = ToleranceResolver(_RecordingLogger(), self.store)

    def test_min_tolerance_scales_with_coordinate_magnitude(self):
        self.assertAlmostEqual(ToleranceResolver.min_tolerance(Point(0, 0)) / 3.6e-15, 1.0)
        self.assertAlmostEqual(ToleranceResolver.min_tolerance(Point(1000, -20000)) / 7.2e-11, 1.0)

    def test_empty_geometry_still_gets_positive_tolerance(self):
        self.assertGreater(ToleranceResolver.min_tolerance(GeometryCollection()), 0.0)

    def test_topology_precision_takes_precedence(self):
        self.store.create_topology("precise", precision=0.5)
        self.store.create_topology("loose")

        self.assertEqual(self.resolver.resolve_default_tolerance("precise", Point(100, 100)), 0.5)
        self.assertAlmostEqual(self.resolver.resolve_default_tolerance("loose", Point(100, 100)) / 3.6e-13, 1.0)

    def test_negative_or_nan_precision_is_rejected(self):
        for precision in (-0.5, float("nan")):
            with self.subTest(precision=precision):
                with self.assertRaises(ValueError):
                    self.store.create_topology("bad", precision=precision)
        self.assertEqual(self.store.topology_names(), [])

    def test_resolved_tolerance_is_always_positive(self):
        self.store.create_topology("T", precision=0.0)
        for geom in (Point(0, 0), Point(1e6, -1e6), GeometryCollection()):
            with self.subTest(geom=geom.wkt):
                self.assertGreater(self.resolver.resolve_default_tolerance("T", geom), 0.0)


class LogCleanupTests(unittest.TestCase):
    def test_only_expired_topology_logs_are_removed(self):
        today = datetime.date.today()
        old = (today - datetime.timedelta(days=10)).strftime("%Y%m%d")
        recent = today.strftime("%Y%m%d")

        with tempfile.TemporaryDirectory() as tmp:
            for name in (f"{LOG_FILE_PREFIX}{old}.log", f"{LOG_FILE_PREFIX}{recent}.log",
                         f"{LOG_FILE_PREFIX}broken.log", "other.log"):
                with open(os.path.join(tmp, name), "w", encoding="utf-8") as f:
                    f.write("x")

            logger = _RecordingLogger()
            removed = clean_old_logs(tmp, logger, retention_days=3)

            self.assertEqual(removed, 1)
            self.assertEqual(
                sorted(os.listdir(tmp)),
                sorted([f"{LOG_FILE_PREFIX}{recent}.log", f"{LOG_FILE_PREFIX}broken.log", "other.log"]),
            )
            self.assertTrue(any(level == "WARNING" for level, _ in logger.records))

    def test_missing_directory_is_skipped(self):
        self.assertEqual(clean_old_logs("/nonexistent/topo-logs", _RecordingLogger()), 0)


if __name__ == "__main__":
    unittest.main()
