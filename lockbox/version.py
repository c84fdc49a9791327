"""Lockbox Meta information.
   Lockbox keeps encrypted secrets in a local store and hands them
   to shells and child processes.
"""
__title__ = 'lockbox'
__description__ = (
   'Lockbox keeps encrypted secrets in a local store and hands them '
   'to shells and child processes.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2025 Lockbox Developers'
__author__ = 'Lockbox Developers'
__author_email__ = 'lockbox@users.noreply.github.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/MQ37/lockbox'
