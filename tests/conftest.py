"""
Pytest configuration for local imports and shared image fixtures.
"""

# Standard Library
import base64
import io
import os
import sys

# PIP3 modules
import PIL.Image
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


#============================================
def make_png_bytes(size: int = 42, color: int = 0, mode: str = "L") -> bytes:
	"""
	Build a small PNG in memory.

	Args:
		size: Image width and height in pixels.
		color: Fill value.
		mode: PIL image mode.

	Returns:
		PNG bytes.
	"""
	image = PIL.Image.new(mode, (size, size), color)
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
	return make_png_bytes()


@pytest.fixture
def png_data_url(png_bytes: bytes) -> str:
	return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
