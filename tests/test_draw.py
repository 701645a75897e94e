import base64
import io

import PIL.Image
import pytest

import conftest
import qr_sheet_layout.config
import qr_sheet_layout.draw
import qr_sheet_layout.geometry


#============================================
def test_strip_data_url() -> None:
	"""
	Any data URL prefix is removed, bare payloads are untouched.
	"""
	assert qr_sheet_layout.draw.strip_data_url("data:image/png;base64,AAAA") == "AAAA"
	assert qr_sheet_layout.draw.strip_data_url("data:image/jpeg;base64,BBBB") == "BBBB"
	assert qr_sheet_layout.draw.strip_data_url("AAAA") == "AAAA"


#============================================
def test_decode_data_url(png_data_url: str) -> None:
	"""
	PNG data URLs decode into an image reader.
	"""
	reader = qr_sheet_layout.draw.decode_raster_image(png_data_url)
	assert reader is not None
	assert reader.getSize() == (42, 42)


#============================================
def test_decode_bare_base64_and_bytes(png_bytes: bytes) -> None:
	"""
	Bare base64 strings and raw bytes both decode.
	"""
	encoded = base64.b64encode(png_bytes).decode("ascii")
	assert qr_sheet_layout.draw.decode_raster_image(encoded) is not None
	assert qr_sheet_layout.draw.decode_raster_image(png_bytes) is not None


#============================================
def test_decode_data_url_bytes(png_bytes: bytes) -> None:
	"""
	A data URL stored as bytes has its prefix stripped before decoding.
	"""
	encoded = base64.b64encode(png_bytes).decode("ascii")
	payload = ("data:image/png;base64," + encoded).encode("ascii")
	reader = qr_sheet_layout.draw.decode_raster_image(payload)
	assert reader is not None
	assert reader.getSize() == (42, 42)
	assert qr_sheet_layout.draw.decode_raster_image(b"data:image/png;base64,\xff\xfe") is None


#============================================
def test_decode_oversized_image_returns_none(png_bytes: bytes, monkeypatch) -> None:
	"""
	Images past the decompression bomb limit become placeholders.
	"""
	monkeypatch.setattr(PIL.Image, "MAX_IMAGE_PIXELS", 100)
	assert qr_sheet_layout.draw.decode_raster_image(png_bytes) is None


#============================================
@pytest.mark.parametrize(
	"payload",
	[
		None,
		"",
		"data:image/png;base64,",
		"data:image/png;base64,not base64 at all!",
		base64.b64encode(b"definitely not an image").decode("ascii"),
		b"",
		b"\x89PNG truncated",
	],
)
def test_decode_failures_return_none(payload) -> None:
	"""
	Absent or broken payloads decode to None instead of raising.
	"""
	assert qr_sheet_layout.draw.decode_raster_image(payload) is None


#============================================
def test_flatten_transparency_uses_white() -> None:
	"""
	Transparent pixels become white, not black.
	"""
	image = PIL.Image.new("RGBA", (4, 4), (0, 0, 0, 0))
	flat = qr_sheet_layout.draw.flatten_transparency(image)
	assert flat.mode == "RGB"
	assert flat.getpixel((1, 1)) == (255, 255, 255)
	gray = PIL.Image.new("L", (4, 4), 0)
	assert qr_sheet_layout.draw.flatten_transparency(gray) is gray


#============================================
def test_decode_palette_png() -> None:
	"""
	Palette images are normalized before embedding.
	"""
	png = conftest.make_png_bytes(size=10, color=3, mode="P")
	assert qr_sheet_layout.draw.decode_raster_image(png) is not None


#============================================
def test_parse_hex_color() -> None:
	"""
	Hex colors map to unit RGB.
	"""
	assert qr_sheet_layout.draw.parse_hex_color("#FF0000") == (1.0, 0.0, 0.0)
	assert qr_sheet_layout.draw.parse_hex_color("#999999") == pytest.approx((0.6, 0.6, 0.6))


#============================================
@pytest.mark.parametrize("value", ["red", "#12345", "", "#GGGGGG"])
def test_parse_hex_color_rejects_malformed(value: str) -> None:
	"""
	Malformed colors raise instead of silently drawing black.
	"""
	with pytest.raises(ValueError):
		qr_sheet_layout.draw.parse_hex_color(value)


#============================================
def test_label_font_size_has_floor() -> None:
	"""
	Label size scales with the artwork but never drops below the minimum.
	"""
	assert qr_sheet_layout.draw.compute_label_font_size(10.0) == qr_sheet_layout.config.LABEL_MIN_FONT_SIZE
	assert qr_sheet_layout.draw.compute_label_font_size(200.0) == pytest.approx(12.0)


#============================================
def test_compose_items_counts_placeholders(png_data_url: str) -> None:
	"""
	Bad artwork becomes a placeholder and every item is visited in order.
	"""
	settings = qr_sheet_layout.config.ExportSettings(items_per_row=2)
	items = [
		qr_sheet_layout.config.QRItem(id="a", name="Kitchen", raster_image=png_data_url),
		qr_sheet_layout.config.QRItem(id="b", name="Garden", raster_image=None),
		qr_sheet_layout.config.QRItem(id="c", name="Garage", raster_image="data:image/png;base64,@@@"),
	]
	layout = qr_sheet_layout.geometry.compute_layout(len(items), settings)
	buffer = io.BytesIO()
	ctx = qr_sheet_layout.draw.create_draw_context(buffer, layout.page)
	visited: list[int] = []
	placeholders = qr_sheet_layout.draw.compose_items(ctx, layout, items, True, visited.append)
	assert placeholders == 2
	assert visited == [0, 1, 2]


class RecordingCanvas:
	"""
	Minimal canvas stand-in that records drawing calls.
	"""

	def __init__(self) -> None:
		self.calls: list[tuple] = []

	def __getattr__(self, name: str):
		def record(*args, **kwargs):
			self.calls.append((name, args))
		return record


#============================================
def test_placeholder_prints_item_id() -> None:
	"""
	A placeholder shows the item id inset from its top-left corner.
	"""
	layout = qr_sheet_layout.geometry.compute_layout(1, qr_sheet_layout.config.ExportSettings(qr_size_mm=20.0))
	placement = layout.placements[0]
	canvas = RecordingCanvas()
	ctx = qr_sheet_layout.draw.DrawContext(canvas, layout.page.page_width, layout.page.page_height)
	item = qr_sheet_layout.config.QRItem(id="suite-12", name="Suite 12", raster_image=None)
	assert qr_sheet_layout.draw.draw_item(ctx, placement, item, False) is False
	fonts = [args for name, args in canvas.calls if name == "setFont"]
	assert fonts == [("Helvetica", qr_sheet_layout.config.PLACEHOLDER_ID_MIN_FONT_SIZE)]
	strings = [args for name, args in canvas.calls if name == "drawString"]
	assert len(strings) == 1
	text_x, text_y, text = strings[0]
	assert text == "suite-12"
	assert text_x == pytest.approx(placement.qr_x + 5.0)
	box_top = layout.page.page_height - placement.qr_y
	assert box_top - placement.qr_size < text_y < box_top - 5.0


#============================================
def test_placeholder_id_font_scales_with_artwork() -> None:
	"""
	Large placeholders get a proportionally larger id font.
	"""
	layout = qr_sheet_layout.geometry.compute_layout(1, qr_sheet_layout.config.ExportSettings(qr_size_mm=100.0))
	canvas = RecordingCanvas()
	ctx = qr_sheet_layout.draw.DrawContext(canvas, layout.page.page_width, layout.page.page_height)
	qr_sheet_layout.draw.draw_placeholder(ctx, layout.placements[0], "lobby")
	fonts = [args for name, args in canvas.calls if name == "setFont"]
	assert fonts == [("Helvetica", pytest.approx(layout.qr_size * 0.08))]
