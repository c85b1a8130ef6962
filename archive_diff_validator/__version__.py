"""
Package metadata.
"""

__title__ = 'archive-diff-validator'
__description__ = 'Diff two sets of extracted archives and verify the changes against expectations.'
__url__ = 'https://github.com/JBamberger/archive-diff'
__version__ = '0.2.0'
__author__ = 'JBamberger'
__author_email__ = ''
__license__ = 'MIT'
__copyright__ = 'Copyright JBamberger'
