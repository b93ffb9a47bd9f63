# fat12_reader: a read-only FAT12 image reader
# (c) Maxim Suhanov
#
# This module implements a console browser for FAT12 disk images.

import sys
import argparse
import logging
from . import __version__
from .Fields import FileSystemException
from .Session import FileSystemSession, DISK_GOOD_CONDITION, DISK_FAILED_TO_OPEN, DISK_BAD_BOOT_SECTOR

TABLE_BORDER = '+-----------+-------------------------------------------------------+'

DISK_STATE_MESSAGES = {
	DISK_FAILED_TO_OPEN: 'FAILED TO OPEN DISK!',
	DISK_BAD_BOOT_SECTOR: 'DISK HAS BAD BOOT SECTOR!'
}

logger = logging.getLogger(__name__)

def FormatDiskState(DiskState):
	"""Return a message for a given disk state (an empty string for a disk in good condition)."""

	return DISK_STATE_MESSAGES.get(DiskState, '')

def FormatEntryList(Entries):
	"""Format directory entries as a numbered table, return a string."""

	lines = [ TABLE_BORDER, '|  MY DISK  | Select the options below to access or press 0 to exit |', TABLE_BORDER, '|  Option   |         Name          |    Type     |       size      |', TABLE_BORDER ]

	for i, entry in enumerate(Entries):
		if entry.is_directory:
			lines.append('|  {:4d}     |{:>12s}           |{:<6s}       |         #       |'.format(i + 1, entry.short_name, 'Folder'))
		else:
			lines.append('|  {:4d}     |{:>12s}           |{:<6s}       | {:8d} Bytes  |'.format(i + 1, entry.short_name, 'File', entry.size))

	lines.append(TABLE_BORDER)
	return '\n'.join(lines)

def FormatTree(Items):
	"""Format (path, DirectoryEntry) tuples, one per line, return a string."""

	lines = []
	for path, entry in Items:
		if entry.is_directory:
			lines.append('{}/'.format(path))
		else:
			lines.append('{}\t{}'.format(path, entry.size))

	return '\n'.join(lines)

def FormatGeometry(Geometry, VolumeInfo):
	"""Format the geometry and the volume information, return a string."""

	volume_id, volume_label = VolumeInfo

	lines = []
	for name, value in Geometry._asdict().items():
		if type(value) is bytes:
			value = value.decode('ascii', errors = 'replace')

		lines.append('{}: {}'.format(name, value))

	if volume_id is not None:
		lines.append('volume_id: {:08X}'.format(volume_id))
		lines.append('volume_label: {}'.format(volume_label.rstrip(b' ').decode('ascii', errors = 'replace')))

	return '\n'.join(lines)

class Browser(object):
	"""This class is used to browse a file system interactively (numbered options, 0 to exit)."""

	session = None
	"""A FileSystemSession object (opened)."""

	input_func = None
	"""A function used to read user input."""

	output = None
	"""A text file object used for output."""

	def __init__(self, session, input_func = input, output = None):
		self.session = session
		self.input_func = input_func

		if output is None:
			output = sys.stdout

		self.output = output

	def write(self, text):
		self.output.write(text)
		self.output.flush()

	def read_choice(self):
		"""Read a choice from the user, return it (None is returned when the input is over)."""

		while True:
			try:
				line = self.input_func('\n\n[OPTION] >> ')
			except EOFError:
				return

			try:
				return int(line.strip())
			except ValueError:
				self.write('\n\n\tPlease re-enter your option or press 0 to exit!')

	def print_file(self, entry):
		"""Print the contents of a file (truncated to its size)."""

		remaining = entry.size
		if remaining > 0:
			for chunk in self.session.read_file(entry.first_cluster):
				self.write(chunk[ : remaining].decode(self.session.encoding, errors = 'replace'))

				remaining -= len(chunk)
				if remaining <= 0: # Do not read clusters beyond the end of the file.
					break

		self.session.release_stream()

	def run(self):
		"""Run the browser until the user chooses to exit."""

		listing = self.session.read_directory()
		self.write('\n' + FormatEntryList(listing))

		while True:
			choice = self.read_choice()
			if choice is None or choice == 0:
				return

			if choice < 0 or choice > len(listing):
				self.write('\n\n\tNo such option: {}'.format(choice))
				continue

			entry = listing[choice - 1]

			try:
				if entry.is_directory:
					listing = self.session.read_directory(entry.first_cluster)
				else:
					self.write('\n\n=>> [Read file ... ]\n\nFile: {}\n\n'.format(entry.short_name))
					self.print_file(entry)
					self.input_func('\n\nPress Enter to continue...')
			except FileSystemException as e:
				logger.warning('Operation failed: %s', e)
				self.write('\n\n\tOperation failed: {}'.format(e))
			except EOFError:
				return

			self.write('\n' + FormatEntryList(listing))

	def __str__(self):
		return 'Browser'

def main(argv = None):
	"""Run the console browser, return the exit code."""

	parser = argparse.ArgumentParser(description = 'Browse a FAT12 disk image (the image is never written to).')
	parser.add_argument('image', help = 'a disk image to read')

	actions = parser.add_mutually_exclusive_group()
	actions.add_argument('--list', metavar = 'PATH', help = 'list a directory and exit')
	actions.add_argument('--cat', metavar = 'PATH', help = 'write a file to the standard output and exit')
	actions.add_argument('--tree', action = 'store_true', help = 'list all files and directories and exit')
	actions.add_argument('--info', action = 'store_true', help = 'print the boot sector fields and exit')

	parser.add_argument('--encoding', default = 'ascii', help = 'a codepage for short names (default: ascii)')
	parser.add_argument('--verbose', action = 'store_true', help = 'print debug messages')
	parser.add_argument('--version', action = 'version', version = __version__)

	args = parser.parse_args(argv)

	if args.verbose:
		logging.basicConfig(level = logging.DEBUG, format = '%(levelname)s: %(name)s: %(message)s')
	else:
		logging.basicConfig(level = logging.WARNING, format = '%(levelname)s: %(name)s: %(message)s')

	session = FileSystemSession(encoding = args.encoding)

	disk_state = session.open(args.image)
	if disk_state != DISK_GOOD_CONDITION:
		print(FormatDiskState(disk_state), file = sys.stderr)
		return 1

	try:
		if args.list is not None:
			entry = session.resolve_path(args.list)
			if entry is None:
				listing = session.read_directory()
			elif entry.is_directory:
				listing = session.read_directory(entry.first_cluster)
			else:
				listing = [ entry ]

			print(FormatEntryList(listing))
		elif args.cat is not None:
			entry = session.resolve_path(args.cat)
			if entry is None or entry.is_directory:
				print('Not a file: {}'.format(args.cat), file = sys.stderr)
				return 1

			sys.stdout.flush()
			sys.stdout.buffer.write(session.read_file_data(entry.first_cluster, entry.size))
			sys.stdout.buffer.flush()
		elif args.tree:
			print(FormatTree(session.walk()))
		elif args.info:
			print(FormatGeometry(session.get_geometry(), session.get_volume_info()))
		else:
			Browser(session).run()
			print()
	except FileSystemException as e:
		print('Error: {}'.format(e), file = sys.stderr)
		return 1
	finally:
		session.close()

	return 0
