from setuptools import setup
from fat12_reader import __version__

setup(
	name = 'fat12_reader',
	version = __version__,
	license = 'GPLv3',
	packages = [ 'fat12_reader' ],
	provides = [ 'fat12_reader' ],
	scripts = [ 'fat12_browse', 'fat12_mount' ],
	description = 'A read-only FAT12 disk image reader',
	author = 'Maxim Suhanov',
	author_email = 'no.spam.c@mail.ru',
	classifiers = [
		'License :: OSI Approved :: GNU General Public License v3 (GPLv3)',
		'Operating System :: OS Independent',
		'Programming Language :: Python :: 3',
		'Development Status :: 4 - Beta'
	],
	extras_require = {
		'FUSE': [ 'llfuse' ],
		'test': [ 'pytest' ]
	}
)
