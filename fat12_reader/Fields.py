# fat12_reader: a read-only FAT12 image reader
# (c) Maxim Suhanov
#
# This module implements the little-endian field decoder used by other modules.

class FileSystemException(Exception):
	"""This is a top-level exception for this package."""

	def __init__(self, value):
		self._value = value

	def __str__(self):
		return repr(self._value)

class RangeException(FileSystemException):
	"""This exception is raised when a field is addressed outside a buffer."""

	pass

def CheckRange(Buffer, Offset, Width):
	"""Raise an exception if 'Width' bytes starting at 'Offset' do not fit into a given buffer."""

	if Offset < 0 or Offset + Width > len(Buffer):
		raise RangeException('Out of bounds, offset: {}, width: {}, buffer size: {}'.format(Offset, Width, len(Buffer)))

def DecodeField(Buffer, Offset, Width):
	"""Decode and return an unsigned little-endian integer (1 to 8 bytes long) found at a given offset."""

	if Width < 1 or Width > 8:
		raise ValueError('Invalid field width: {}'.format(Width))

	CheckRange(Buffer, Offset, Width)

	value = 0
	for i in range(Width):
		value |= Buffer[Offset + i] << (8 * i)

	return value

def DecodeBytes(Buffer, Offset, Width):
	"""Return raw bytes of a field found at a given offset."""

	CheckRange(Buffer, Offset, Width)

	return bytes(Buffer[Offset : Offset + Width])
