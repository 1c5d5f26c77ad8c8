import logging
from io import BytesIO
from typing import Any, Dict

import pytest
from PIL import Image

from barcoderender.drawing import Canvas, CanvasSink, DrawingSink, NullSink, RasterSink, SurfaceRegistry
from barcoderender.drawing.pillow_sink import parse_color


def _finish(sink: RasterSink) -> Image.Image:
    return Image.open(BytesIO(sink.finalize()))


class TestParseColor:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("ff0000", (255, 0, 0)),
            ("#00FF00", (0, 255, 0)),
            ("0000ff", (0, 0, 255)),
            ("white", (255, 255, 255)),
        ],
    )
    def test_valid(self, value: str, expected: tuple) -> None:
        assert parse_color(value) == expected

    @pytest.mark.parametrize("value", [None, "", "notacolor", "12345"])
    def test_invalid(self, value: Any) -> None:
        assert parse_color(value) is None


class TestProtocol:
    @pytest.mark.parametrize("sink", [NullSink(), RasterSink({}), CanvasSink({}, Canvas())])
    def test_backends_satisfy_protocol(self, sink: Any) -> None:
        assert isinstance(sink, DrawingSink)


class TestRasterSink:
    def test_surface_size(self) -> None:
        sink = RasterSink({})
        sink.scale(2, 3)
        sink.init(10.5, 4)
        assert _finish(sink).size == (21, 12)

    def test_padding_in_pixels(self) -> None:
        options: Dict[str, Any] = {"paddingleft": 1, "paddingright": 2, "paddingtop": 3, "paddingbottom": 4}
        sink = RasterSink(options)
        sink.init(10, 10)
        assert _finish(sink).size == (13, 17)

    def test_minimum_size(self) -> None:
        sink = RasterSink({})
        sink.init(0, 0)
        assert _finish(sink).size == (1, 1)

    def test_draw_before_init(self) -> None:
        sink = RasterSink({})
        with pytest.raises(RuntimeError):
            sink.bar(0, 0, 1, 1, "000000")
        with pytest.raises(RuntimeError):
            sink.finalize()

    def test_bar_is_scaled_and_offset(self) -> None:
        sink = RasterSink({"paddingleft": 2, "paddingtop": 2})
        sink.scale(2, 2)
        sink.init(5, 5)
        sink.bar(1, 1, 2, 2, "ff0000")
        image = _finish(sink)
        assert image.getpixel((4, 4)) == (255, 0, 0, 255)
        assert image.getpixel((7, 7)) == (255, 0, 0, 255)
        assert image.getpixel((8, 8))[3] == 0
        assert image.getpixel((3, 3))[3] == 0

    def test_zero_width_bar_draws_nothing(self) -> None:
        sink = RasterSink({})
        sink.init(4, 4)
        sink.bar(1, 1, 0, 2, "000000")
        image = _finish(sink)
        assert all(image.getpixel((x, y))[3] == 0 for x in range(4) for y in range(4))

    def test_text_draws_pixels(self) -> None:
        sink = RasterSink({"backgroundcolor": "ffffff"})
        sink.init(60, 20)
        sink.text(30, 2, "123", "000000", 12)
        image = _finish(sink).convert("L")
        assert image.getextrema()[0] < 128

    def test_bad_bar_color_warns_once(self, caplog: pytest.LogCaptureFixture) -> None:
        sink = RasterSink({})
        sink.init(10, 2)
        with caplog.at_level(logging.WARNING, logger="barcoderender.drawing.pillow_sink"):
            for x in range(5):
                sink.bar(x * 2, 0, 1, 2, "notacolor")
        warnings = [r for r in caplog.records if "Unparseable color" in r.getMessage()]
        assert len(warnings) == 1
        image = _finish(sink)
        assert image.getpixel((0, 0)) == (0, 0, 0, 255)
        assert image.getpixel((8, 1)) == (0, 0, 0, 255)

    def test_unparseable_background_is_transparent(self) -> None:
        sink = RasterSink({"backgroundcolor": "bogus"})
        sink.init(2, 2)
        assert _finish(sink).getpixel((0, 0))[3] == 0

    def test_compress_level_changes_size_not_pixels(self) -> None:
        def png(level: int) -> bytes:
            sink = RasterSink({"backgroundcolor": "ffffff"}, compress_level=level)
            sink.init(50, 50)
            sink.bar(0, 0, 25, 50, "000000")
            return sink.finalize()

        fast, best = png(0), png(9)
        assert len(fast) > len(best)
        assert list(Image.open(BytesIO(fast)).getdata()) == list(Image.open(BytesIO(best)).getdata())


class TestCanvas:
    def test_defaults(self) -> None:
        canvas = Canvas()
        assert (canvas.width, canvas.height) == (300, 150)
        assert canvas.image.mode == "RGBA"

    def test_canvas_sink_resizes_and_returns_canvas(self) -> None:
        canvas = Canvas(id="c")
        sink = CanvasSink({"backgroundcolor": "0000ff"}, canvas)
        sink.init(7, 3)
        sink.bar(0, 0, 1, 3, "ff0000")
        assert sink.finalize() is canvas
        assert (canvas.width, canvas.height) == (7, 3)
        assert canvas.image.getpixel((0, 0)) == (255, 0, 0, 255)
        assert canvas.image.getpixel((6, 2)) == (0, 0, 255, 255)


class TestSurfaceRegistry:
    def test_lookup_order(self) -> None:
        registry = SurfaceRegistry()
        first = registry.register(Canvas(id="a", classes=["barcode"]))
        second = registry.register(Canvas(id="b", classes=["barcode"]))
        assert registry.lookup("a") is first
        assert registry.lookup("#b") is second
        assert registry.lookup(".barcode") is first
        assert registry.lookup(".other") is None
        assert registry.lookup("missing") is None
        assert len(registry) == 2
        assert "a" in registry

    def test_unregister(self) -> None:
        registry = SurfaceRegistry()
        registry.register(Canvas(id="a"))
        registry.unregister("a")
        registry.unregister("a")
        assert registry.lookup("a") is None

    def test_register_requires_id(self) -> None:
        with pytest.raises(ValueError):
            SurfaceRegistry().register(Canvas())


class TestNullSink:
    def test_accepts_everything(self) -> None:
        sink = NullSink()
        sink.scale(3, 4)
        sink.init(100, 100)
        sink.bar(0, 0, 1, 1, "000000")
        sink.text(0, 0, "x", "000000", 10)
        assert sink.finalize() is None
        assert (sink.scale_x, sink.scale_y) == (3, 4)
