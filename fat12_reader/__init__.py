# fat12_reader: a read-only FAT12 image reader
# (c) Maxim Suhanov

__version__ = '1.0.0'
__all__ = [ 'Fields', 'Storage', 'BootSector', 'FAT', 'DirectoryEntries', 'Session', 'Browser' ]
