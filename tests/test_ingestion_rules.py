import unittest

from shapely import wkt
from shapely.geometry import (
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)

from Service.topo_modules.errors import (
    LayerNotFoundError,
    NotFoundError,
    TopologyNotFoundError,
    TypeMismatchError,
    UnsupportedGeometryTypeError,
    UnsupportedOperationError,
)
from Service.topo_modules.ingestion import FeatureIngestor
from Service.topo_modules.types import FeatureType, Found, LayerInfo, NotFound, TopologyInfo


class _RecordingLogger:
    def __init__(self):
        self.records = []

    def log(self, msg, level="DEBUG"):
        self.records.append((level, msg))


class _FakeBackend:
    """레지스트리/허용 오차/컨테이너/삽입/관계 원장 역할을 모두 기록하는 테스트 더블"""

    def __init__(self, layers, default_tolerance=0.25, responses=None):
        self.topology = TopologyInfo(id=7, name="T", precision=0.0)
        self.layers = {layer.layer_id: layer for layer in layers}
        self.default_tolerance = default_tolerance
        self.responses = responses or {}
        self.tolerance_requests = []
        self.inserted = []
        self.containers = []
        self.relations = set()
        self.exists_checks = []
        self.writes = []

    def lookup_topology(self, name):
        return Found(self.topology) if name == self.topology.name else NotFound(name)

    def lookup_layer(self, topology_id, layer_id):
        layer = self.layers.get(layer_id)
        if topology_id != self.topology.id or layer is None:
            return NotFound(f"{topology_id}.{layer_id}")
        return Found(layer)

    def resolve_default_tolerance(self, topology_name, geom):
        self.tolerance_requests.append((topology_name, geom))
        return self.default_tolerance

    def create_feature_container(self, topology_name, feature_type, layer_id):
        self.containers.append((topology_name, feature_type, layer_id))
        return len(self.containers)

    def _insert(self, kind, topology_name, geom, tolerance):
        self.inserted.append((kind, geom.wkt, tolerance))
        return list(self.responses.get(kind, [len(self.inserted)]))

    def insert_point(self, topology_name, geom, tolerance):
        return self._insert("point", topology_name, geom, tolerance)

    def insert_line(self, topology_name, geom, tolerance):
        return self._insert("line", topology_name, geom, tolerance)

    def insert_polygon(self, topology_name, geom, tolerance):
        return self._insert("polygon", topology_name, geom, tolerance)

    def relation_exists(self, topology_name, feature_id, layer_id, element_type, element_id):
        key = (feature_id, layer_id, element_type, element_id)
        self.exists_checks.append(key)
        return key in self.relations

    def write_relation(self, topology_name, feature_id, layer_id, element_type, element_id):
        key = (feature_id, layer_id, element_type, element_id)
        self.writes.append(key)
        self.relations.add(key)


def _layer(layer_id, feature_type, level=0):
    return LayerInfo(topology_id=7, layer_id=layer_id, feature_type=feature_type, level=level)


def _ingestor(backend):
    return FeatureIngestor(
        logger=_RecordingLogger(),
        registry=backend,
        tolerance_source=backend,
        container_factory=backend,
        inserter=backend,
        ledger=backend,
        trace_relations=True,
    )


_SQUARE = Polygon([(0, 0), (1, 0), (1, 1), (0, 1)])

SAMPLES = {
    "collection": [GeometryCollection([Point(0, 0), LineString([(0, 0), (1, 1)])])],
    "puntal": [Point(0, 0), MultiPoint([(0, 0), (2, 2)])],
    "lineal": [LineString([(0, 0), (1, 1)]), MultiLineString([[(0, 0), (1, 0)], [(0, 1), (1, 1)]])],
    "areal": [_SQUARE, MultiPolygon([_SQUARE, Polygon([(5, 5), (6, 5), (6, 6)])])],
}

# 기대되는 호환성 (geometry 분류 -> 허용 레이어 유형)
EXPECTED_ALLOWED = {
    "collection": {FeatureType.COLLECTION},
    "puntal": {FeatureType.PUNTAL, FeatureType.COLLECTION},
    "lineal": {FeatureType.LINEAL, FeatureType.COLLECTION},
    "areal": {FeatureType.AREAL, FeatureType.COLLECTION},
}


class ContextResolutionTests(unittest.TestCase):
    def test_unknown_topology_raises_not_found(self):
        backend = _FakeBackend([_layer(1, FeatureType.PUNTAL)])
        with self.assertRaises(TopologyNotFoundError) as ctx:
            _ingestor(backend).to_topo_geom(Point(0, 0), "missing", 1)
        self.assertIsInstance(ctx.exception, NotFoundError)
        self.assertIn('"missing"', str(ctx.exception))
        self.assertEqual(backend.containers, [])

    def test_unknown_layer_raises_not_found(self):
        backend = _FakeBackend([_layer(1, FeatureType.PUNTAL)])
        with self.assertRaises(LayerNotFoundError) as ctx:
            _ingestor(backend).to_topo_geom(Point(0, 0), "T", 99)
        self.assertIn('"99"', str(ctx.exception))
        self.assertIn('"T"', str(ctx.exception))

    def test_hierarchical_layer_is_rejected_for_every_geometry(self):
        for feature_type in FeatureType:
            backend = _FakeBackend([_layer(1, feature_type, level=1)])
            ingestor = _ingestor(backend)
            for samples in SAMPLES.values():
                for geom in samples:
                    with self.subTest(feature_type=feature_type, geom=geom.geom_type):
                        with self.assertRaises(UnsupportedOperationError):
                            ingestor.to_topo_geom(geom, "T", 1, 1.0)
            self.assertEqual(backend.containers, [])
            self.assertEqual(backend.inserted, [])


class CompatibilityMatrixTests(unittest.TestCase):
    def test_every_class_and_layer_type_combination(self):
        for geom_class, samples in SAMPLES.items():
            for feature_type in FeatureType:
                for geom in samples:
                    with self.subTest(geom=geom.geom_type, layer=feature_type.label):
                        backend = _FakeBackend([_layer(1, feature_type)])
                        ingestor = _ingestor(backend)
                        if feature_type in EXPECTED_ALLOWED[geom_class]:
                            feature = ingestor.to_topo_geom(geom, "T", 1, 1.0)
                            self.assertEqual(feature.layer_id, 1)
                            self.assertEqual(feature.topology_id, 7)
                            self.assertEqual(backend.containers[0][2], 1)
                        else:
                            with self.assertRaises(TypeMismatchError):
                                ingestor.to_topo_geom(geom, "T", 1, 1.0)
                            self.assertEqual(backend.containers, [])

    def test_container_is_typed_after_geometry_class(self):
        expected = {
            "collection": FeatureType.COLLECTION,
            "puntal": FeatureType.PUNTAL,
            "lineal": FeatureType.LINEAL,
            "areal": FeatureType.AREAL,
        }
        for geom_class, samples in SAMPLES.items():
            backend = _FakeBackend([_layer(1, FeatureType.COLLECTION)])
            feature = _ingestor(backend).to_topo_geom(samples[0], "T", 1, 1.0)
            self.assertEqual(feature.type, expected[geom_class])
            self.assertEqual(backend.containers[0][1], expected[geom_class])

    def test_type_mismatch_message_names_layer_topology_and_type(self):
        backend = _FakeBackend([_layer(3, FeatureType.AREAL)])
        with self.assertRaises(TypeMismatchError) as ctx:
            _ingestor(backend).to_topo_geom(SAMPLES["collection"][0], "T", 3, 1.0)
        msg = str(ctx.exception)
        self.assertIn('"3"', msg)
        self.assertIn('"T"', msg)
        self.assertIn("areal", msg)
        self.assertEqual(ctx.exception.layer_type, "areal")

    def test_collection_layer_is_labelled_mixed(self):
        backend = _FakeBackend([_layer(2, FeatureType.PUNTAL)])
        with self.assertRaises(TypeMismatchError) as ctx:
            _ingestor(backend).to_topo_geom(_SQUARE, "T", 2, 1.0)
        self.assertIn("is puntal, cannot hold an areal feature", str(ctx.exception))
        self.assertEqual(FeatureType.COLLECTION.label, "mixed")

    def test_unclassifiable_geometry_type_is_internal_error(self):
        class _Curve:
            geom_type = "CircularString"
            is_empty = False

        backend = _FakeBackend([_layer(1, FeatureType.COLLECTION)])
        with self.assertRaises(UnsupportedGeometryTypeError) as ctx:
            _ingestor(backend).to_topo_geom(_Curve(), "T", 1, 1.0)
        self.assertIn("CircularString", str(ctx.exception))
        self.assertEqual(backend.containers, [])


class ToleranceDefaultingTests(unittest.TestCase):
    def test_zero_tolerance_is_resolved_and_forwarded(self):
        backend = _FakeBackend([_layer(1, FeatureType.LINEAL)], default_tolerance=0.25)
        _ingestor(backend).to_topo_geom(LineString([(0, 0), (1, 0)]), "T", 1, 0)

        self.assertEqual(len(backend.tolerance_requests), 1)
        self.assertEqual(backend.tolerance_requests[0][0], "T")
        self.assertEqual([t for _, _, t in backend.inserted], [0.25])

    def test_missing_tolerance_is_resolved(self):
        backend = _FakeBackend([_layer(1, FeatureType.PUNTAL)], default_tolerance=0.5)
        _ingestor(backend).to_topo_geom(Point(1, 1), "T", 1, None)
        self.assertEqual([t for _, _, t in backend.inserted], [0.5])

    def test_explicit_tolerance_is_used_verbatim(self):
        backend = _FakeBackend([_layer(1, FeatureType.AREAL)])
        _ingestor(backend).to_topo_geom(_SQUARE, "T", 1, 2.0)

        self.assertEqual(backend.tolerance_requests, [])
        self.assertEqual(backend.inserted, [("polygon", _SQUARE.wkt, 2.0)])


class RelationRegistrationTests(unittest.TestCase):
    def test_parts_are_dispatched_by_dimension(self):
        geom = GeometryCollection([
            Point(0, 0),
            LineString([(0, 0), (1, 0)]),
            _SQUARE,
            MultiPoint([(3, 3), (4, 4)]),
        ])
        backend = _FakeBackend([_layer(1, FeatureType.COLLECTION)])
        _ingestor(backend).to_topo_geom(geom, "T", 1, 1.0)

        self.assertEqual([kind for kind, _, _ in backend.inserted], ["point", "line", "polygon", "point", "point"])
        self.assertEqual(sorted(w[2] for w in backend.writes), [1, 1, 1, 2, 3])

    def test_empty_parts_only_collection_yields_no_relations(self):
        geom = wkt.loads("GEOMETRYCOLLECTION (POINT EMPTY, LINESTRING EMPTY, POLYGON EMPTY)")
        backend = _FakeBackend([_layer(1, FeatureType.COLLECTION)])
        feature = _ingestor(backend).to_topo_geom(geom, "T", 1, 1.0)

        self.assertEqual(feature.id, 1)
        self.assertEqual(backend.inserted, [])
        self.assertEqual(backend.writes, [])

    def test_same_primitive_from_two_parts_is_written_once(self):
        backend = _FakeBackend([_layer(1, FeatureType.PUNTAL)], responses={"point": [42]})
        feature = _ingestor(backend).to_topo_geom(MultiPoint([(0, 0), (0, 0.0001)]), "T", 1, 1.0)

        self.assertEqual(len(backend.inserted), 2)
        self.assertEqual(backend.writes, [(feature.id, 1, 1, 42)])

    def test_repeated_ids_in_one_insertion_are_written_once(self):
        backend = _FakeBackend([_layer(1, FeatureType.LINEAL)], responses={"line": [5, 6, 5]})
        _ingestor(backend).to_topo_geom(LineString([(0, 0), (1, 0)]), "T", 1, 1.0)
        self.assertEqual(backend.writes, [(1, 1, 2, 5), (1, 1, 2, 6)])

    def test_relation_already_persisted_is_not_written_again(self):
        backend = _FakeBackend([_layer(1, FeatureType.LINEAL)], responses={"line": [5, 6]})
        backend.relations.add((1, 1, 2, 5))

        _ingestor(backend).to_topo_geom(LineString([(0, 0), (1, 0)]), "T", 1, 1.0)

        self.assertIn((1, 1, 2, 5), backend.exists_checks)
        self.assertEqual(backend.writes, [(1, 1, 2, 6)])
        self.assertEqual(backend.relations, {(1, 1, 2, 5), (1, 1, 2, 6)})

    def test_engine_error_propagates_without_writes(self):
        class _FailingBackend(_FakeBackend):
            def insert_polygon(self, topology_name, geom, tolerance):
                raise ValueError("numerical failure")

        backend = _FailingBackend([_layer(1, FeatureType.AREAL)])
        with self.assertRaises(ValueError):
            _ingestor(backend).to_topo_geom(_SQUARE, "T", 1, 1.0)
        self.assertEqual(backend.writes, [])

    def test_none_geometry_is_rejected_before_lookup(self):
        backend = _FakeBackend([_layer(1, FeatureType.COLLECTION)])
        with self.assertRaises(ValueError):
            _ingestor(backend).to_topo_geom(None, "T", 1)
        self.assertEqual(backend.tolerance_requests, [])
        self.assertEqual(backend.containers, [])


if __name__ == "__main__":
    unittest.main()
