# fat12_reader: a read-only FAT12 image reader
# (c) Maxim Suhanov
#
# This module implements a file system session: it owns the state of a single opened FAT12 image.

import logging
from .Fields import FileSystemException, RangeException
from .Storage import DiskImage, OpenFailedException, IoException
from .BootSector import BootSector, BootSectorException, ParseBootSector, GetFirstFATSector, GetRootDirectorySector, GetRootDirectorySectorCount, GetCountOfClusters, ClusterToSector
from .FAT import FAT, FileAllocationTableException
from .DirectoryEntries import DirectoryEntries, PATH_SEPARATOR, ExpandPath, IsDotEntry

BOOT_SECTOR = 0 # The physical sector of the boot sector.
ROOT_DIRECTORY = 0 # The logical cluster used to refer to the root directory (also found in dot-dot entries).

# Disk states reported when opening a disk image:
DISK_GOOD_CONDITION = 0
DISK_FAILED_TO_OPEN = 1
DISK_BAD_BOOT_SECTOR = 2

DISK_STATES = {
	DISK_GOOD_CONDITION: 'GOOD_CONDITION',
	DISK_FAILED_TO_OPEN: 'FAILED_TO_OPEN',
	DISK_BAD_BOOT_SECTOR: 'BAD_BOOT_SECTOR'
}

logger = logging.getLogger(__name__)

class SessionException(FileSystemException):
	"""This exception is raised when an operation requires a validated file system, but there is none."""

	pass

class PathNotFoundException(FileSystemException):
	"""This exception is raised when a path cannot be resolved."""

	pass

class FileSystemSession(object):
	"""This class is used to read a FAT12 file system (volume) from a disk image.
	A session owns the geometry, the FAT, the current directory listing and the current file stream.
	"""

	storage = None
	"""A storage object (a disk image) to read sectors from."""

	encoding = None
	"""A codepage for short (8.3) names."""

	geometry = None
	"""A validated geometry (or None, if no file system is opened)."""

	fat = None
	"""A FAT object for this volume."""

	sector_size = None
	"""A sector size in effect (in bytes)."""

	bs_buf = None
	"""Data of the boot sector."""

	directory_listing = None
	"""The current directory listing (a list of DirectoryEntry named tuples)."""

	active_stream = None
	"""The current file stream (a generator)."""

	file_sink = None
	"""A registered function receiving file chunks."""

	def __init__(self, storage = None, encoding = 'ascii'):
		if storage is None:
			storage = DiskImage()

		self.storage = storage
		self.encoding = encoding

	def open(self, name):
		"""Open a disk image, validate the boot sector and load the FAT.
		Return the disk state: DISK_GOOD_CONDITION, DISK_FAILED_TO_OPEN or DISK_BAD_BOOT_SECTOR.
		"""

		if self.fat is not None:
			raise SessionException('A file system is already opened')

		try:
			self.storage.open(name)
		except OpenFailedException as e:
			logger.warning('Failed to open the disk image: %s', e)
			return DISK_FAILED_TO_OPEN

		try:
			bs_buf = self.storage.read_sector(BOOT_SECTOR)
			geometry = ParseBootSector(bs_buf)

			self.sector_size = self.storage.set_sector_size(geometry.bytes_per_sector)

			fat_buf = self.storage.read_sectors(GetFirstFATSector(geometry), geometry.sectors_per_fat)

			count_of_clusters = GetCountOfClusters(geometry)
			if count_of_clusters is not None:
				last_valid_cluster = count_of_clusters + 1
			else:
				last_valid_cluster = None

			fat = FAT(fat_buf, last_valid_cluster)
		except (BootSectorException, RangeException, IoException, FileAllocationTableException) as e:
			logger.warning('Bad boot sector: %s', e)
			self.storage.close()
			return DISK_BAD_BOOT_SECTOR

		self.bs_buf = bs_buf
		self.geometry = geometry
		self.fat = fat

		logger.debug('FAT loaded: %d bytes, sector size: %d bytes', len(fat_buf), self.sector_size)
		return DISK_GOOD_CONDITION

	def check_open(self):
		"""Raise an exception if there is no validated file system."""

		if self.fat is None:
			raise SessionException('No validated file system opened')

	def get_geometry(self):
		"""Get and return the geometry (as a named tuple: Geometry)."""

		self.check_open()
		return self.geometry

	def get_volume_info(self):
		"""Get and return the volume ID and the volume label as a tuple: (volume_id, volume_label).
		If these fields are not present, return (None, None).
		"""

		self.check_open()
		return BootSector(self.bs_buf).get_bs_extfields()

	def read_cluster(self, cluster):
		"""Read a data cluster by its number, return it (as raw bytes)."""

		return self.storage.read_sectors(ClusterToSector(self.geometry, cluster), self.geometry.sectors_per_cluster)

	def release_stream(self):
		"""Stop the current file stream (if any)."""

		if self.active_stream is not None:
			self.active_stream.close()
			self.active_stream = None

	def clear_directory(self):
		"""Release the current directory listing (if any)."""

		self.directory_listing = None

	def read_directory(self, first_cluster = ROOT_DIRECTORY):
		"""Read the root directory (if the first cluster is ROOT_DIRECTORY) or a subdirectory, return its entries (as a list of DirectoryEntry named tuples).
		The previous listing and the current file stream (if any) are released.
		"""

		self.check_open()

		self.release_stream()
		self.clear_directory()

		if first_cluster == ROOT_DIRECTORY:
			sectors_count = GetRootDirectorySectorCount(self.geometry)
			if sectors_count > 0:
				buf = self.storage.read_sectors(GetRootDirectorySector(self.geometry), sectors_count)
			else:
				buf = b''
		else:
			bufs = []
			for cluster in self.fat.chain(first_cluster):
				bufs.append(self.read_cluster(cluster))

			buf = b''.join(bufs)

		self.directory_listing = list(DirectoryEntries(buf).entries(self.encoding))

		logger.debug('Directory at cluster %d: %d entries', first_cluster, len(self.directory_listing))
		return self.directory_listing

	def read_file(self, first_cluster):
		"""Read a file, return its clusters (as a generator of raw bytes, one item per cluster).
		The last chunk is not truncated, use the file size to do this.
		The previous file stream (if any) is released.
		"""

		def stream(clusters):
			try:
				for cluster in clusters:
					yield self.read_cluster(cluster)
			finally:
				logger.debug('File stream of cluster %d released', first_cluster)

		self.check_open()
		self.release_stream()

		if first_cluster == 0: # This file is empty, no chain.
			clusters = []
		else:
			clusters = self.fat.chain(first_cluster)

		self.active_stream = stream(clusters)
		return self.active_stream

	def register_file_sink(self, func):
		"""Register a function receiving file chunks (see the feed_file() method)."""

		self.file_sink = func

	def feed_file(self, first_cluster, sink = None):
		"""Read a file and pass its chunks to a sink (or to the registered one), return the number of chunks passed.
		If the sink returns False, stop reading.
		"""

		if sink is None:
			sink = self.file_sink

		if sink is None:
			raise ValueError('No file sink registered')

		stream = self.read_file(first_cluster)

		count = 0
		try:
			for chunk in stream:
				count += 1
				if sink(chunk) is False:
					break
		finally:
			stream.close()

		return count

	def read_file_data(self, first_cluster, file_size):
		"""Read a file, return its data (as raw bytes) truncated to a given file size."""

		bufs = []
		read_bytes = 0

		stream = self.read_file(first_cluster)
		try:
			for chunk in stream:
				bufs.append(chunk)
				read_bytes += len(chunk)

				if read_bytes >= file_size: # No need to read more.
					break
		finally:
			stream.close()

		return b''.join(bufs)[ : file_size]

	def walk(self):
		"""Walk over the file system, return tuples: (path, DirectoryEntry).
		Dot and dot-dot entries are not reported.
		Subdirectories that cannot be read are skipped.
		"""

		def process_directory(first_cluster, parent_path, stack):
			for entry in self.read_directory(first_cluster):
				if IsDotEntry(entry):
					continue

				path = ExpandPath(parent_path, entry)
				yield (path, entry)

				if not entry.is_directory or entry.first_cluster == ROOT_DIRECTORY:
					continue

				if entry.first_cluster in stack:
					# This is a loop, skip this entry.
					logger.warning('Directory loop at %s', path)
					continue

				try:
					for item in process_directory(entry.first_cluster, path, stack | set([entry.first_cluster])):
						yield item
				except FileSystemException as e:
					logger.warning('Cannot read directory %s: %s', path, e)

		self.check_open()

		for item in process_directory(ROOT_DIRECTORY, '', set()):
			yield item

	def resolve_path(self, path):
		"""Resolve a path (short names separated by slashes, case insensitive), return the DirectoryEntry (or None for the root directory)."""

		self.check_open()

		entry = None
		for part in path.split(PATH_SEPARATOR):
			if len(part) == 0:
				continue

			if entry is not None and not entry.is_directory:
				raise PathNotFoundException('Not a directory: {}'.format(entry.short_name))

			if entry is None:
				first_cluster = ROOT_DIRECTORY
			else:
				first_cluster = entry.first_cluster

			for candidate in self.read_directory(first_cluster):
				if candidate.short_name.upper() == part.upper():
					entry = candidate
					break
			else:
				raise PathNotFoundException('Path not found: {}'.format(path))

		return entry

	def close(self):
		"""Release the FAT, the current directory listing, the current file stream and the disk image."""

		self.release_stream()
		self.clear_directory()

		if self.fat is not None or self.geometry is not None:
			logger.debug('Session closed')

		self.fat = None
		self.geometry = None
		self.bs_buf = None
		self.sector_size = None

		self.storage.close()

	def __str__(self):
		return 'FileSystemSession (FAT12)'
