from typing import Any, Dict, List
from unittest.mock import Mock

import pytest

from barcoderender.engine import ArrayView, EncodingEngine, SymbologyEngine, _runs
from barcoderender.enums import Rotation, Symbology
from barcoderender.exceptions import EncodingError


@pytest.fixture
def engine() -> SymbologyEngine:
    return SymbologyEngine()


class TestArrayView:
    def test_materialize_is_owned_copy(self) -> None:
        backing = [0, 1, 2, 3, 4]
        view = ArrayView(backing, 1, 3)
        copy = view.materialize()
        assert copy == [1, 2, 3]
        backing[1] = 9
        assert copy == [1, 2, 3]
        assert view.materialize() == [9, 2, 3]

    def test_len_and_iter(self) -> None:
        view = ArrayView([5, 6, 7, 8], 2, 2)
        assert len(view) == 2
        assert list(view) == [7, 8]


class TestRuns:
    @pytest.mark.parametrize(
        "modules,expected",
        [
            ("1110010", [3, 2, 1, 1]),
            ("0011", [0, 2, 2]),
            ("G1G0G", [3, 1, 1]),
            ("1", [1]),
        ],
    )
    def test_run_lengths(self, modules: str, expected: List[int]) -> None:
        assert _runs(modules) == expected


class TestSymbologyEngine:
    def test_satisfies_protocol(self, engine: SymbologyEngine) -> None:
        assert isinstance(engine, EncodingEngine)

    def test_unknown_bcid(self, engine: SymbologyEngine) -> None:
        with pytest.raises(EncodingError) as exc_info:
            engine(Mock(), "nosuchcode", "123", {})
        assert exc_info.value.bcid == "nosuchcode"

    def test_invalid_payload_is_chained(self, engine: SymbologyEngine) -> None:
        with pytest.raises(EncodingError) as exc_info:
            engine(Mock(), "ean13", "12AB", {})
        assert exc_info.value.__cause__ is not None
        assert exc_info.value.bcid == "ean13"

    def test_linear_drawing(self, engine: SymbologyEngine) -> None:
        sink = Mock()
        assert engine(sink, "code128", "12345", {}) is None
        sink.init.assert_called_once()
        width, height = sink.init.call_args[0]
        assert height == 72.0
        sbs = engine(Mock(), "code128", "12345", {}, raw=True)[0]["sbs"].materialize()
        assert width == sum(sbs)
        assert sink.bar.call_count == sum(1 for i, w in enumerate(sbs) if i % 2 == 0 and w)
        sink.text.assert_not_called()

    def test_bars_use_barcolor(self, engine: SymbologyEngine) -> None:
        sink = Mock()
        engine(sink, "code39", "ABC", {"barcolor": "ff0000"})
        assert all(c[0][4] == "ff0000" for c in sink.bar.call_args_list)

    def test_includetext_draws_human_readable(self, engine: SymbologyEngine) -> None:
        sink = Mock()
        engine(sink, "code128", "12345", {"includetext": True, "textsize": 8})
        sink.text.assert_called_once()
        x, y, label, rgb, size = sink.text.call_args[0]
        assert label == "12345"
        assert size == 8
        assert rgb == "000000"
        width, height = sink.init.call_args[0]
        assert x == width / 2
        assert height == 72.0 + 2.0 + 8

    def test_alttext_replaces_label(self, engine: SymbologyEngine) -> None:
        sink = Mock()
        engine(sink, "code128", "12345", {"includetext": True, "alttext": "ALT"})
        assert sink.text.call_args[0][2] == "ALT"

    @pytest.mark.parametrize("flag", ["false", "0", "", False])
    def test_includetext_false_strings(self, engine: SymbologyEngine, flag: Any) -> None:
        sink = Mock()
        engine(sink, "code128", "12345", {"includetext": flag})
        sink.text.assert_not_called()

    def test_height_and_width_in_inches(self, engine: SymbologyEngine) -> None:
        sink = Mock()
        engine(sink, "code128", "12345", {"height": 0.5, "width": 2.0})
        width, height = sink.init.call_args[0]
        assert width == pytest.approx(144.0)
        assert height == 36.0

    def test_negative_height_rejected(self, engine: SymbologyEngine) -> None:
        with pytest.raises(EncodingError):
            engine(Mock(), "code128", "12345", {"height": -1})

    def test_qrcode_drawing(self, engine: SymbologyEngine) -> None:
        sink = Mock()
        engine(sink, "qrcode", "hello", {})
        sink.init.assert_called_once_with(42.0, 42.0)
        assert sink.bar.call_count > 0
        for c in sink.bar.call_args_list:
            x, y, w, h, _ = c[0]
            assert h == 2.0
            assert 0 <= x < 42 and 0 <= y < 42

    def test_qrcode_bad_eclevel(self, engine: SymbologyEngine) -> None:
        with pytest.raises(EncodingError):
            engine(Mock(), "qrcode", "hello", {"eclevel": "Z"})

    def test_qrcode_overflowing_fixed_version(self, engine: SymbologyEngine) -> None:
        with pytest.raises(EncodingError):
            engine(Mock(), "qrcode", "x" * 200, {"version": 1})

    def test_pdf417_raw(self, engine: SymbologyEngine) -> None:
        entry: Dict[str, Any] = engine(Mock(), "pdf417", "hello world", {}, raw=True)[0]
        pixs = entry["pixs"].materialize()
        assert len(pixs) == entry["pixx"] * entry["pixy"]
        assert entry["height"] == pytest.approx(entry["pixy"] * 3 / 72)

    @pytest.mark.parametrize("text", ["A", "hi", "hello", "12345"])
    def test_pdf417_short_payload_default_columns(self, engine: SymbologyEngine, text: str) -> None:
        entry = engine(Mock(), "pdf417", text, {}, raw=True)[0]
        assert entry["pixy"] >= 3
        assert entry["opt"]["columns"] <= 6

    def test_pdf417_longer_payload_keeps_default_columns(self, engine: SymbologyEngine) -> None:
        entry = engine(Mock(), "pdf417", "x" * 200, {}, raw=True)[0]
        assert entry["opt"]["columns"] == 6

    def test_pdf417_explicit_columns_not_adjusted(self, engine: SymbologyEngine) -> None:
        with pytest.raises(EncodingError) as exc_info:
            engine(Mock(), "pdf417", "hi", {"columns": 30})
        assert exc_info.value.__cause__ is not None

    @pytest.mark.parametrize("key", ["height", "width"])
    @pytest.mark.parametrize("value", ["1e400", "inf", float("inf"), "tall"])
    def test_unusable_dimension_rejected(self, engine: SymbologyEngine, key: str, value: Any) -> None:
        sink = Mock()
        with pytest.raises(EncodingError) as exc_info:
            engine(sink, "code128", "12345", {key: value})
        assert key in exc_info.value.message
        sink.init.assert_not_called()

    def test_negative_width_rejected(self, engine: SymbologyEngine) -> None:
        with pytest.raises(EncodingError):
            engine(Mock(), "code128", "12345", {"width": -2})

    @pytest.mark.parametrize("options", [{"height": 1e300}, {"width": 1e306}, {"includetext": True, "textsize": 1e300}])
    def test_oversized_symbol_rejected(self, engine: SymbologyEngine, options: Dict[str, Any]) -> None:
        sink = Mock()
        with pytest.raises(EncodingError, match="out of range"):
            engine(sink, "code128", "12345", options)
        sink.init.assert_not_called()

    def test_raw_linear_views_share_backing(self, engine: SymbologyEngine) -> None:
        entry = engine(Mock(), "ean13", "400638133393", {}, raw=True)[0]
        assert entry["sbs"].backing is entry["bhs"].backing is entry["bbs"].backing
        assert entry["bhs"].offset == len(entry["sbs"])
        assert entry["txt"] == ["4006381333931"]

    def test_raw_mode_initializes_sink_without_drawing(self, engine: SymbologyEngine) -> None:
        sink = Mock()
        engine(sink, "code128", "12345", {}, raw=True)
        sink.init.assert_called_once()
        sink.bar.assert_not_called()
        sink.text.assert_not_called()

    def test_supported_symbologies(self) -> None:
        supported = SymbologyEngine.supported_symbologies()
        assert Symbology.CODE128 in supported
        assert Symbology.QRCODE in supported


class TestEnums:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("N", Rotation.NORMAL),
            ("r", Rotation.RIGHT),
            ("L", Rotation.LEFT),
            ("I", Rotation.INVERTED),
            (None, Rotation.NORMAL),
            ("", Rotation.NORMAL),
            ("X", Rotation.NORMAL),
        ],
    )
    def test_rotation_parse(self, value: Any, expected: Rotation) -> None:
        assert Rotation.parse(value) is expected

    def test_symbology_kind(self) -> None:
        assert Symbology.CODE128.kind == "linear"
        assert Symbology.QRCODE.kind == "matrix"
        assert Symbology.PDF417.kind == "stacked"

    def test_localized_names(self) -> None:
        assert Symbology.EAN13.localized_name("en") == "EAN-13"
        assert Symbology.QRCODE.localized_name("ru") == "QR код"
        assert Symbology.CODE39.localized_name("ru") == "Code 39"
