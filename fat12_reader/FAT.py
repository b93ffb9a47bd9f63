# fat12_reader: a read-only FAT12 image reader
# (c) Maxim Suhanov
#
# This module implements an interface to work with a file allocation table (FAT12).

import logging
from .Fields import FileSystemException, RangeException

FAT12_EOC = 0x0FF8 # End of chain.
FAT12_BAD = 0x0FF7 # Bad cluster.

FIRST_DATA_CLUSTER = 2 # The first two FAT entries are reserved.

logger = logging.getLogger(__name__)

class FileAllocationTableException(FileSystemException):
	"""This exception is raised when something is wrong with the file allocation table (FAT)."""

	pass

class CorruptChainException(FileAllocationTableException):
	"""This exception is raised when a cluster chain is corrupted (for example, when it contains a loop)."""

	pass

class FAT(object):
	"""This class is used to work with a file allocation table (12-bit), loaded into memory."""

	fat_buf = None
	"""Data of a FAT (immutable)."""

	last_valid_cluster = None
	"""The last valid data cluster (or None, if not known)."""

	def __init__(self, fat_buf, last_valid_cluster = None):
		self.fat_buf = bytes(fat_buf)
		self.last_valid_cluster = last_valid_cluster

		if len(self.fat_buf) < 3:
			raise FileAllocationTableException('Invalid FAT size: {}'.format(len(self.fat_buf)))

	def get_element(self, number):
		"""Get and return the FAT entry by its number."""

		# Two entries are packed into three bytes.
		fat_item_offset = number + number // 2
		if number < 0 or fat_item_offset + 2 > len(self.fat_buf):
			raise RangeException('Out of bounds, FAT element: {}'.format(number))

		if self.last_valid_cluster is not None and number > self.last_valid_cluster:
			# The total sectors field may under-report the volume size, decode the entry anyway.
			logger.warning('FAT element beyond the last valid cluster: %d (last valid cluster: %d)', number, self.last_valid_cluster)

		if number % 2 == 0:
			return self.fat_buf[fat_item_offset] | ((self.fat_buf[fat_item_offset + 1] & 0x0F) << 8)
		else:
			return (self.fat_buf[fat_item_offset] >> 4) | (self.fat_buf[fat_item_offset + 1] << 4)

	def chain(self, first_cluster):
		"""Get and return the cluster chain for the given first cluster (as a list of cluster numbers).
		The end-of-chain and bad cluster markers are not included.
		"""

		if first_cluster < FIRST_DATA_CLUSTER:
			# Clusters 0 and 1 are reserved, there is no chain.
			raise RangeException('Invalid first cluster: {}'.format(first_cluster))

		chain = [ first_cluster ]
		visited = set(chain)

		curr_cluster = first_cluster
		while True:
			next_cluster = self.get_element(curr_cluster)

			if next_cluster >= FAT12_EOC:
				# End of chain, stop.
				break
			elif next_cluster == FAT12_BAD:
				# Bad cluster, stop.
				logger.warning('Bad cluster after cluster %d (chain of %d)', curr_cluster, first_cluster)
				break
			elif next_cluster < FIRST_DATA_CLUSTER:
				# An unallocated or reserved cluster is linked.
				raise CorruptChainException('Cluster {} points to an unallocated or reserved cluster: {}'.format(curr_cluster, next_cluster))

			if next_cluster in visited: # This is a loop, the FAT is corrupted.
				raise CorruptChainException('Loop detected, cluster {} points to cluster {}'.format(curr_cluster, next_cluster))

			chain.append(next_cluster)
			visited.add(next_cluster)
			curr_cluster = next_cluster

		logger.debug('Chain of cluster %d: %d cluster(s)', first_cluster, len(chain))
		return chain

	def is_allocated(self, cluster):
		"""Check if a given cluster is marked as allocated (None is returned if the cluster is invalid)."""

		try:
			return self.get_element(cluster) != 0
		except RangeException:
			return

	def __str__(self):
		return 'FAT (12-bit)'
