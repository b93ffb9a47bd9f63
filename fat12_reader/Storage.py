# fat12_reader: a read-only FAT12 image reader
# (c) Maxim Suhanov
#
# This module implements an interface to read sectors from a disk image.

import logging
from .Fields import FileSystemException

DEFAULT_SECTOR_SIZE = 512 # The native sector size.

logger = logging.getLogger(__name__)

class StorageException(FileSystemException):
	"""This exception is raised when something is wrong with the underlying storage."""

	pass

class OpenFailedException(StorageException):
	"""This exception is raised when a disk image cannot be opened."""

	pass

class IoException(StorageException):
	"""This exception is raised when a sector read fails or returns less data than requested."""

	pass

class DiskImage(object):
	"""This class is used to read sectors from a disk image (the image is never written to)."""

	volume_object = None
	"""A file object for a disk image."""

	volume_offset = None
	"""An offset of a volume (in bytes)."""

	sector_size = None
	"""A current sector size (in bytes)."""

	owns_volume_object = None
	"""True if the file object was opened by this class (and should be closed by it)."""

	def __init__(self, volume_object = None, volume_offset = 0):
		self.volume_object = volume_object
		self.volume_offset = volume_offset
		self.sector_size = DEFAULT_SECTOR_SIZE
		self.owns_volume_object = False

		if self.volume_offset < 0:
			raise ValueError('Invalid volume offset: {}'.format(self.volume_offset))

	def open(self, name):
		"""Open a disk image by its path (if no file object was given before), reset the sector size to the default value.
		A file object given to the constructor is used as is (the 'name' argument is only logged).
		"""

		self.sector_size = DEFAULT_SECTOR_SIZE

		if self.volume_object is not None:
			logger.debug('Using a file object for %s', name)
			return self.volume_object

		try:
			self.volume_object = open(name, 'rb')
		except OSError as e:
			raise OpenFailedException('Cannot open the disk image: {} ({})'.format(name, e.strerror))

		self.owns_volume_object = True
		logger.debug('Opened the disk image: %s', name)

		return self.volume_object

	def set_sector_size(self, bytes_per_sector):
		"""Adopt a given sector size if it is a positive multiple of the native one, return the sector size in effect."""

		if bytes_per_sector > 0 and bytes_per_sector % DEFAULT_SECTOR_SIZE == 0 and bytes_per_sector != DEFAULT_SECTOR_SIZE:
			self.sector_size = bytes_per_sector
			logger.debug('Sector size set to %d bytes', self.sector_size)

		return self.sector_size

	def read_sectors(self, index, count):
		"""Read 'count' sectors starting from a given sector index, return them (as raw bytes)."""

		if self.volume_object is None:
			raise IoException('No disk image opened')

		if index < 0 or count < 1:
			raise IoException('Invalid sector range: {}, {}'.format(index, count))

		offset = self.volume_offset + index * self.sector_size
		size = count * self.sector_size

		try:
			self.volume_object.seek(offset)
			buf = self.volume_object.read(size)
		except OSError as e:
			raise IoException('Cannot read sectors {}-{}: {}'.format(index, index + count - 1, e))

		if len(buf) != size:
			raise IoException('Truncated read at sector {}: {} bytes of {}'.format(index, len(buf), size))

		return buf

	def read_sector(self, index):
		"""Read a single sector by its index, return it (as raw bytes)."""

		return self.read_sectors(index, 1)

	def close(self):
		"""Close the disk image (if it was opened by this class)."""

		if self.volume_object is not None and self.owns_volume_object:
			self.volume_object.close()
			logger.debug('Closed the disk image')

		self.volume_object = None
		self.owns_volume_object = False

	def __str__(self):
		return 'DiskImage'
