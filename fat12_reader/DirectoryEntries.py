# fat12_reader: a read-only FAT12 image reader
# (c) Maxim Suhanov
#
# This module implements an interface to work with directory entries.

import logging
from collections import namedtuple
from .Fields import DecodeField, DecodeBytes

PATH_SEPARATOR = '/'

DIRECTORY_ENTRY_SIZE = 32

# Markers found in the first byte of a name:
DELETED_ENTRY = 0xE5 # The entry is deleted.
UNUSED_ENTRY = 0x00 # The entry has never been used.
KANJI_ENTRY = 0x05 # The first character is 0xE5 (not deleted).

# File attributes:
ATTR_READ_ONLY = 0x01
ATTR_HIDDEN = 0x02
ATTR_SYSTEM = 0x04
ATTR_VOLUME_ID = 0x08
ATTR_DIRECTORY = 0x10
ATTR_ARCHIVE = 0x20
ATTR_LONG_NAME = ATTR_READ_ONLY | ATTR_HIDDEN | ATTR_SYSTEM | ATTR_VOLUME_ID

logger = logging.getLogger(__name__)

# Only the directory bit is interpreted, everything else is treated as a file.
DirectoryEntry = namedtuple('DirectoryEntry', [ 'short_name', 'short_name_raw', 'is_directory', 'attributes', 'first_cluster', 'size' ])

def ParseShortName(Name, Encoding = 'ascii'):
	"""Parse a given short (8.3) name, return a string.
	Decoding errors are not raised.
	"""

	if len(Name) > 0 and Name[0] == KANJI_ENTRY:
		Name = b'\xE5' + Name[1 : ]

	base = Name[ : 8].rstrip(b' ').decode(Encoding, errors = 'replace')
	extension = Name[8 : 11].rstrip(b' ').decode(Encoding, errors = 'replace')

	if len(extension) > 0: # Merge the base name and the extension.
		return base + '.' + extension

	# Return the base name only.
	return base

def IsDotEntry(Entry):
	"""Check if a given directory entry is the dot or dot-dot entry."""

	return Entry.short_name in [ '.', '..' ]

def ExpandPath(ParentPath, Entry):
	"""Join a parent path and the name of a given directory entry, return a string."""

	if len(ParentPath) > 0 and ParentPath[-1] != PATH_SEPARATOR:
		ParentPath += PATH_SEPARATOR
	elif len(ParentPath) == 0:
		ParentPath = PATH_SEPARATOR

	return ParentPath + Entry.short_name

class DirectoryEntries(object):
	"""This class is used to work with directory entries of a directory region (the root directory or clusters of a subdirectory)."""

	clusters_buf = None
	"""Data of a directory region."""

	def __init__(self, clusters_buf):
		self.clusters_buf = clusters_buf

		if len(self.clusters_buf) % DIRECTORY_ENTRY_SIZE != 0:
			logger.debug('Directory region is not aligned to %d bytes: %d bytes', DIRECTORY_ENTRY_SIZE, len(self.clusters_buf))

	def entries(self, encoding = 'ascii'):
		"""Get, decode and return directory entries (as named tuples: DirectoryEntry) in the on-disk order.
		Deleted entries, unused entries and long name entries are skipped.
		"""

		pos = 0
		while pos + DIRECTORY_ENTRY_SIZE <= len(self.clusters_buf):
			first_byte = DecodeField(self.clusters_buf, pos, 1)
			attributes = DecodeField(self.clusters_buf, pos + 11, 1)

			if first_byte == DELETED_ENTRY or first_byte == UNUSED_ENTRY:
				pos += DIRECTORY_ENTRY_SIZE
				continue

			if attributes == ATTR_LONG_NAME: # This is a long name entry, skip it.
				pos += DIRECTORY_ENTRY_SIZE
				continue

			short_name_raw = DecodeBytes(self.clusters_buf, pos, 11)
			first_cluster = DecodeField(self.clusters_buf, pos + 26, 2)
			size = DecodeField(self.clusters_buf, pos + 28, 4)

			is_directory = attributes & ATTR_DIRECTORY > 0

			yield DirectoryEntry(ParseShortName(short_name_raw, encoding), short_name_raw, is_directory, attributes, first_cluster, size)

			pos += DIRECTORY_ENTRY_SIZE

	def __str__(self):
		return 'DirectoryEntries'
