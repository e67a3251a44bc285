"""
Pytest configuration for local imports and a recording PDF sink.
"""

# Standard Library
import os
import sys

# PIP3 modules
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


class RecordingSink:
	"""
	PdfSink that records every call as a (name, args) tuple.
	"""

	def __init__(self):
		self.calls: list[tuple] = []
		self.saved_filename: str | None = None

	def new_document(self, unit, orientation):
		self.calls.append(("new_document", unit, orientation))

	def add_page(self, width, height, orientation):
		self.calls.append(("add_page", width, height, orientation))

	def draw_image(self, data, x, y, width, height):
		self.calls.append(("draw_image", data, x, y, width, height))

	def set_line_style(self, width, color, dash_pattern):
		self.calls.append(("set_line_style", width, color, list(dash_pattern)))

	def draw_rect(self, x, y, width, height):
		self.calls.append(("draw_rect", x, y, width, height))

	def draw_line(self, x1, y1, x2, y2):
		self.calls.append(("draw_line", x1, y1, x2, y2))

	def draw_text(self, text, x, y, font_size, color):
		self.calls.append(("draw_text", text, x, y, font_size, color))

	def save(self, filename):
		self.saved_filename = filename
		self.calls.append(("save", filename))

	def named(self, name: str) -> list[tuple]:
		return [call for call in self.calls if call[0] == name]

	def pages(self) -> list[list[tuple]]:
		"""
		Split recorded calls into per-page groups.
		"""
		groups: list[list[tuple]] = []
		for call in self.calls:
			if call[0] == "add_page":
				groups.append([call])
			elif groups and call[0] != "save":
				groups[-1].append(call)
		return groups


@pytest.fixture
def recording_sink() -> RecordingSink:
	return RecordingSink()
