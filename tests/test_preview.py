"""Tests for preview sizing, encoding, and viewport notifications."""

import base64
from io import BytesIO
import itertools

import pytest
from PIL import Image, UnidentifiedImageError

from image_insights.client.preview import Bounds, Viewport, fit_dimensions, render_preview


class TestFitDimensions:
    """Tests for the aspect-ratio preserving fit."""

    def test_wide_image_pins_width(self):
        assert fit_dimensions(300, 100, 1000, 100) == (300, 30)

    def test_tall_image_pins_height(self):
        w, h = fit_dimensions(300, 100, 100, 400)
        assert h == 100
        assert w == 25

    def test_same_aspect_fills_container(self):
        assert fit_dimensions(300, 100, 600, 200) == (300, 100)

    def test_upscales_small_images(self):
        w, h = fit_dimensions(400, 400, 10, 20)
        assert (w, h) == (200, 400)

    @pytest.mark.parametrize(
        "cw,ch,iw,ih",
        list(itertools.product([7, 99.5, 1920], [3, 333.3], [1, 640, 4000], [9, 3000])),
    )
    def test_always_fits_and_keeps_ratio(self, cw, ch, iw, ih):
        w, h = fit_dimensions(cw, ch, iw, ih)
        assert w <= cw
        assert h <= ch
        assert w / h == pytest.approx(iw / ih, rel=1e-9)

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            fit_dimensions(0, 100, 10, 10)
        with pytest.raises(ValueError):
            fit_dimensions(100, 100, 10, -1)


class TestRenderPreview:
    """Tests for rasterising the preview."""

    def test_png_data_url_within_bounds(self, jpeg_bytes):
        preview = render_preview(jpeg_bytes, Bounds(720, 240))
        assert preview.data_url.startswith("data:image/png;base64,")
        assert preview.height == 240
        assert preview.width == 180
        raw = base64.b64decode(preview.data_url.split(",", 1)[1])
        with Image.open(BytesIO(raw)) as img:
            assert img.size == (180, 240)

    def test_integer_size_never_exceeds_float_bounds(self, make_image):
        data = make_image(1000, 333)
        bounds = Bounds(250.5, 83.7)
        preview = render_preview(data, bounds)
        assert preview.width <= bounds.width
        assert preview.height <= bounds.height
        # within a pixel of the original ratio
        assert abs(preview.width - preview.height * 1000 / 333) <= 1000 / 333 + 1

    def test_rejects_non_image_bytes(self):
        with pytest.raises(UnidentifiedImageError):
            render_preview(b"definitely not an image", Bounds(100, 100))


class TestBounds:
    def test_from_width(self):
        assert Bounds.from_width(720, 3.0) == Bounds(720, 240)


class TestViewport:
    """Tests for resize notifications."""

    def test_notifies_subscribers_on_change(self):
        seen = []
        vp = Viewport(Bounds(100, 50))
        vp.subscribe(seen.append)
        vp.resize(Bounds(200, 100))
        assert seen == [Bounds(200, 100)]
        assert vp.bounds == Bounds(200, 100)

    def test_same_bounds_is_not_a_resize(self):
        seen = []
        vp = Viewport(Bounds(100, 50))
        vp.subscribe(seen.append)
        vp.resize(Bounds(100, 50))
        assert seen == []

    def test_unsubscribe_stops_notifications(self):
        seen = []
        vp = Viewport(Bounds(100, 50))
        unsubscribe = vp.subscribe(seen.append)
        assert vp.listener_count == 1
        unsubscribe()
        unsubscribe()  # idempotent
        assert vp.listener_count == 0
        vp.resize(Bounds(300, 100))
        assert seen == []
