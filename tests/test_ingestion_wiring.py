from pathlib import Path
import unittest


class IngestionWiringTests(unittest.TestCase):
    @staticmethod
    def _source(rel_path: str) -> str:
        return Path(rel_path).read_text(encoding="utf-8")

    def test_compatibility_is_an_enumerated_table(self):
        src = self._source("Service/topo_modules/types.py")
        self.assertIn("COMPATIBILITY: Dict[GeometryClass, FrozenSet[FeatureType]]", src)
        ingest = self._source("Service/topo_modules/ingestion.py")
        self.assertIn("if layer.feature_type not in COMPATIBILITY[geometry_class]:", ingest)

    def test_relation_write_is_guarded_twice(self):
        src = self._source("Service/topo_modules/ingestion.py")
        self.assertIn("if elem in seen:", src)
        self.assertIn("self._ledger.relation_exists(", src)
        self.assertLess(src.index("self._ledger.relation_exists("), src.index("self._ledger.write_relation("))

    def test_lookups_use_result_objects(self):
        src = self._source("Service/topo_modules/ingestion.py")
        self.assertIn("if not isinstance(topology_lookup, Found):", src)
        self.assertIn("if not isinstance(layer_lookup, Found):", src)


if __name__ == "__main__":
    unittest.main()
