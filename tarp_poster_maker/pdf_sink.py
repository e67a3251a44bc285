"""
PDF sink contract and its reportlab implementation.
"""

# Standard Library
import io
import pathlib
import typing

# PIP3 modules
import pypdf
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import tarp_poster_maker as tpm
import tarp_poster_maker.config


DEFAULT_FONT_REGULAR = tpm.config.DEFAULT_FONT_REGULAR


class PdfSink(typing.Protocol):
	"""
	Receives page, image and vector draw calls in document units.

	Coordinates use a top-left origin; colors are 0-255 RGB tuples.
	"""

	def new_document(self, unit: str, orientation: str) -> None: ...

	def add_page(self, width: float, height: float, orientation: str) -> None: ...

	def draw_image(self, data: bytes, x: float, y: float, width: float, height: float) -> None: ...

	def set_line_style(self, width: float, color: tuple[int, int, int], dash_pattern: list[float]) -> None: ...

	def draw_rect(self, x: float, y: float, width: float, height: float) -> None: ...

	def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> None: ...

	def draw_text(self, text: str, x: float, y: float, font_size: float, color: tuple[int, int, int]) -> None: ...

	def save(self, filename: str) -> None: ...


class ReportlabPdfSink:
	"""
	PdfSink writing a real PDF with a reportlab canvas.
	"""

	def __init__(self):
		self.unit = tpm.config.UNIT_INCH
		self.orientation = tpm.config.ORIENTATION_PORTRAIT
		self.page_count = 0
		self._buffer: io.BytesIO | None = None
		self._pdf: reportlab.pdfgen.canvas.Canvas | None = None
		self._page_height_pt = 0.0
		self._page_open = False

	def _canvas(self) -> reportlab.pdfgen.canvas.Canvas:
		if self._pdf is None or not self._page_open:
			raise RuntimeError("add_page must be called before drawing")
		return self._pdf

	def _pt(self, value: float) -> float:
		return tpm.config.unit_to_points(value, self.unit)

	def _y(self, value: float) -> float:
		return self._page_height_pt - self._pt(value)

	def new_document(self, unit: str, orientation: str) -> None:
		self.unit = unit
		self.orientation = orientation
		self.page_count = 0
		self._buffer = io.BytesIO()
		self._pdf = reportlab.pdfgen.canvas.Canvas(self._buffer)
		self._page_open = False

	def add_page(self, width: float, height: float, orientation: str) -> None:
		if self._pdf is None:
			raise RuntimeError("new_document must be called before add_page")
		if self._page_open:
			self._pdf.showPage()
		width_pt = self._pt(width)
		self._page_height_pt = self._pt(height)
		self._pdf.setPageSize((width_pt, self._page_height_pt))
		self._page_open = True
		self.page_count += 1

	def draw_image(self, data: bytes, x: float, y: float, width: float, height: float) -> None:
		pdf = self._canvas()
		image_reader = reportlab.lib.utils.ImageReader(io.BytesIO(data))
		pdf.drawImage(
			image_reader,
			self._pt(x),
			self._y(y + height),
			width=self._pt(width),
			height=self._pt(height),
			mask=None,
			preserveAspectRatio=False,
			anchor="sw",
		)

	def set_line_style(self, width: float, color: tuple[int, int, int], dash_pattern: list[float]) -> None:
		pdf = self._canvas()
		pdf.setLineWidth(self._pt(width))
		pdf.setStrokeColorRGB(color[0] / 255.0, color[1] / 255.0, color[2] / 255.0)
		if dash_pattern:
			pdf.setDash([self._pt(value) for value in dash_pattern], 0)
		else:
			pdf.setDash([], 0)

	def draw_rect(self, x: float, y: float, width: float, height: float) -> None:
		pdf = self._canvas()
		pdf.rect(self._pt(x), self._y(y + height), self._pt(width), self._pt(height), stroke=1, fill=0)

	def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> None:
		pdf = self._canvas()
		pdf.line(self._pt(x1), self._y(y1), self._pt(x2), self._y(y2))

	def draw_text(self, text: str, x: float, y: float, font_size: float, color: tuple[int, int, int]) -> None:
		# y is the baseline, font_size is in points
		pdf = self._canvas()
		pdf.setFont(DEFAULT_FONT_REGULAR, font_size)
		pdf.setFillColorRGB(color[0] / 255.0, color[1] / 255.0, color[2] / 255.0)
		pdf.drawString(self._pt(x), self._y(y), text)

	def save(self, filename: str) -> None:
		if self._pdf is None or self._buffer is None:
			raise RuntimeError("new_document must be called before save")
		if self._page_open:
			self._pdf.showPage()
			self._page_open = False
		self._pdf.save()
		output_path = pathlib.Path(filename)
		output_path.parent.mkdir(parents=True, exist_ok=True)
		output_path.write_bytes(self._buffer.getvalue())


#============================================
def read_pdf_summary(path: pathlib.Path) -> dict:
	"""
	Read page count and page sizes back from a written PDF.

	Args:
		path: PDF path.

	Returns:
		Dict with "pages" and "page_sizes" (width, height in points).
	"""
	reader = pypdf.PdfReader(str(path))
	page_sizes = []
	for page in reader.pages:
		box = page.mediabox
		page_sizes.append((float(box.width), float(box.height)))
	return {"pages": len(reader.pages), "page_sizes": page_sizes}
