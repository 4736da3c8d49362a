import cadxchange
from cadxchange.native import Line


def test_version_is_a_string():
    assert isinstance(cadxchange.__version__, str)


def test_top_level_round_trip():
    line = Line((0, 0, 0), (1, 0, 0))
    assert cadxchange.classify(line) is cadxchange.CurveType.LINE
    rec = cadxchange.to_record(line, cadxchange.DEFAULT_SETTINGS)
    assert cadxchange.to_native(rec).end_point == (1.0, 0.0, 0.0)


def test_error_hierarchy():
    for exc in (
        cadxchange.GeometryError,
        cadxchange.MalformedInputError,
        cadxchange.PreconditionError,
        cadxchange.DecodeError,
        cadxchange.ConfigurationError,
    ):
        assert issubclass(exc, cadxchange.ConversionError)
    assert issubclass(cadxchange.MalformedInputError, ValueError)
