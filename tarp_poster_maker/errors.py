"""
Exception types raised by the poster engine.
"""


class PosterError(Exception):
	pass


class InvalidConfigError(PosterError):
	"""
	A config field holds a value the layout cannot use.
	"""

	def __init__(self, field: str, value, message: str):
		self.field = field
		self.value = value
		super().__init__(f"{field}={value!r}: {message}")


class InvalidMarginError(InvalidConfigError):
	"""
	The margin leaves no printable area on the page.
	"""

	def __init__(self, margin: float, printable_width: float, printable_height: float, unit: str):
		self.printable_width = printable_width
		self.printable_height = printable_height
		message = (
			"margins are too large for the selected paper size "
			f"(printable area {printable_width:.2f} x {printable_height:.2f} {unit})"
		)
		super().__init__("margin", margin, message)


class ImageDecodeFailure(PosterError):
	def __init__(self, layer_id: str, reason: str):
		self.layer_id = layer_id
		super().__init__(f"layer {layer_id}: {reason}")


class MissingPaperError(PosterError, KeyError):
	def __init__(self, paper_id: str):
		self.paper_id = paper_id
		super().__init__(f"unknown paper id {paper_id!r}")

	def __str__(self) -> str:
		return self.args[0]


class ExportInProgressError(PosterError):
	pass
