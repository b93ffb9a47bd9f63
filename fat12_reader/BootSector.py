# fat12_reader: a read-only FAT12 image reader
# (c) Maxim Suhanov
#
# This module implements an interface to work with the boot sector (BS) and the BIOS parameter block (BPB).

import logging
from collections import namedtuple
from .Fields import FileSystemException, DecodeField, DecodeBytes
from .DirectoryEntries import DIRECTORY_ENTRY_SIZE

EXTENDED_BOOT_SIGNATURE = 0x29 # The volume ID and the volume label are present.

logger = logging.getLogger(__name__)

Geometry = namedtuple('Geometry', [ 'bytes_per_sector', 'sectors_per_cluster', 'reserved_sectors', 'fat_count', 'max_root_dir_entries', 'total_sectors', 'sectors_per_fat', 'signature', 'fat_type_label' ])

class BootSectorException(FileSystemException):
	"""This exception is raised when something is wrong with the boot sector or the BIOS parameter block."""

	pass

class BootSector(object):
	"""This class is used to work with a FAT12 boot sector."""

	bs_buf = None
	"""Data of a boot sector."""

	def __init__(self, bs_buf):
		if len(bs_buf) < 512:
			raise BootSectorException('Invalid boot sector size: {} bytes'.format(len(bs_buf)))

		self.bs_buf = bs_buf

	def get_bpb_bytspersec(self):
		"""Get and return the bytes per sector value."""

		return DecodeField(self.bs_buf, 11, 2)

	def get_bpb_secperclus(self):
		"""Get and return the sectors per cluster value."""

		return DecodeField(self.bs_buf, 13, 1)

	def get_bpb_rsvdseccnt(self):
		"""Get and return the reserved sectors count."""

		return DecodeField(self.bs_buf, 14, 2)

	def get_bpb_numfats(self):
		"""Get and return the number of FATs."""

		return DecodeField(self.bs_buf, 16, 1)

	def get_bpb_rootentcnt(self):
		"""Get and return the number of entries in the root directory."""

		return DecodeField(self.bs_buf, 17, 2)

	def get_bpb_totsec16(self):
		"""Get and return the 16-bit number of sectors on the volume."""

		return DecodeField(self.bs_buf, 19, 2)

	def get_bpb_fatsz16(self):
		"""Get and return the 16-bit number of sectors in one FAT."""

		return DecodeField(self.bs_buf, 22, 2)

	def get_bs_bootsig(self):
		"""Get and return the boot signature."""

		return DecodeField(self.bs_buf, 38, 1)

	def get_bs_filsystype(self):
		"""Get and return the file system type label (as raw bytes)."""

		return DecodeBytes(self.bs_buf, 54, 8)

	def get_bs_extfields(self):
		"""Get and return the extended fields (if set).
		A tuple is returned: (volume_id, volume_label).
		If the extended fields are not present, return (None, None).
		"""

		if self.get_bs_bootsig() != EXTENDED_BOOT_SIGNATURE:
			return (None, None)

		return (DecodeField(self.bs_buf, 39, 4), DecodeBytes(self.bs_buf, 43, 11))

	def get_geometry(self):
		"""Get and return the geometry (as a named tuple: Geometry). The geometry is not validated here."""

		return Geometry(self.get_bpb_bytspersec(), self.get_bpb_secperclus(), self.get_bpb_rsvdseccnt(), self.get_bpb_numfats(), self.get_bpb_rootentcnt(), self.get_bpb_totsec16(), self.get_bpb_fatsz16(), self.get_bs_bootsig(), self.get_bs_filsystype())

	def __str__(self):
		return 'BootSector'

def IsGeometryValid(VolumeGeometry):
	"""Check if a given geometry describes a supported FAT12 volume.
	All conditions must hold (an invalid sector size is never accepted).
	"""

	if VolumeGeometry.bytes_per_sector < 512 or VolumeGeometry.bytes_per_sector % 512 != 0:
		return False

	if VolumeGeometry.sectors_per_cluster < 1:
		return False

	if VolumeGeometry.reserved_sectors < 1:
		return False

	if VolumeGeometry.fat_count < 2:
		return False

	if VolumeGeometry.max_root_dir_entries % 16 != 0:
		return False

	return True

def ParseBootSector(BootSectorBuffer):
	"""Parse a given boot sector, return the validated geometry (as a named tuple: Geometry)."""

	geometry = BootSector(BootSectorBuffer).get_geometry()
	if not IsGeometryValid(geometry):
		logger.warning('Bad geometry: %r', geometry)
		raise BootSectorException('Invalid geometry: {}'.format(geometry))

	logger.debug('Geometry: %r', geometry)
	return geometry

# The functions below derive the volume layout from a validated geometry.
# All results are sector numbers (or counts) in units of the bytes per sector value.

def GetFirstFATSector(VolumeGeometry):
	"""Return the first sector of the first FAT."""

	return VolumeGeometry.reserved_sectors

def GetRootDirectorySector(VolumeGeometry):
	"""Return the first sector of the root directory."""

	return VolumeGeometry.reserved_sectors + VolumeGeometry.fat_count * VolumeGeometry.sectors_per_fat

def GetRootDirectorySectorCount(VolumeGeometry):
	"""Return the number of sectors in the root directory."""

	return (VolumeGeometry.max_root_dir_entries * DIRECTORY_ENTRY_SIZE + VolumeGeometry.bytes_per_sector - 1) // VolumeGeometry.bytes_per_sector

def GetDataRegionSector(VolumeGeometry):
	"""Return the first sector of the data region (this is where the cluster #2 is located)."""

	return GetRootDirectorySector(VolumeGeometry) + GetRootDirectorySectorCount(VolumeGeometry)

def GetCountOfClusters(VolumeGeometry):
	"""Calculate and return the number of data clusters (None, if the total number of sectors is not recorded)."""

	if VolumeGeometry.total_sectors == 0 or VolumeGeometry.sectors_per_cluster == 0:
		return

	data_sectors = VolumeGeometry.total_sectors - GetDataRegionSector(VolumeGeometry)
	if data_sectors < 0:
		return 0

	return data_sectors // VolumeGeometry.sectors_per_cluster

def ClusterToSector(VolumeGeometry, Cluster):
	"""Return the first sector of a given data cluster."""

	return GetDataRegionSector(VolumeGeometry) + (Cluster - 2) * VolumeGeometry.sectors_per_cluster
